"""EventBus tests"""

from src.core.event_bus import MAX_DEPTH, BusEvent, EventBus
from src.core.event_types import EventTypes


def _event(event_type: str = "evt", source: str = "test", **data) -> BusEvent:
    return BusEvent(event_type=event_type, data=data, source=source)


class TestSubscribeEmit:
    def test_basic_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe("day_ended", lambda e: received.append(e))
        bus.emit(_event("day_ended", day=3))
        assert len(received) == 1
        assert received[0].data["day"] == 3

    def test_handlers_run_in_order(self):
        bus = EventBus()
        results = []
        bus.subscribe("evt", lambda e: results.append("a"))
        bus.subscribe("evt", lambda e: results.append("b"))
        bus.emit(_event())
        assert results == ["a", "b"]

    def test_no_handlers(self):
        EventBus().emit(_event("no_one_listens"))

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(e)  # noqa: E731
        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.emit(_event())
        assert received == []

    def test_unsubscribe_unknown_handler(self):
        bus = EventBus()
        bus.subscribe("evt", lambda e: None)
        bus.unsubscribe("evt", lambda e: None)
        assert bus.handler_count == 1


class TestDepthLimit:
    def test_nested_emits_stop_at_max_depth(self):
        bus = EventBus()
        call_count = 0

        def recursive_handler(event: BusEvent):
            nonlocal call_count
            call_count += 1
            # fresh source each time so duplicate suppression does not kick in
            bus.emit(_event("chain", source=f"handler_{call_count}"))

        bus.subscribe("chain", recursive_handler)
        bus.emit(_event("chain", source="origin"))
        assert call_count == MAX_DEPTH


class TestDuplicateSuppression:
    def test_same_source_same_type_blocked(self):
        bus = EventBus()
        count = 0

        def handler(event: BusEvent):
            nonlocal count
            count += 1
            bus.emit(_event(source="same_source"))

        bus.subscribe("evt", handler)
        bus.emit(_event(source="same_source"))
        assert count == 1

    def test_different_source_allowed(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", lambda e: received.append(e.source))
        bus.emit(_event(source="a"))
        bus.emit(_event(source="b"))
        assert received == ["a", "b"]

    def test_reset_chain_allows_next_turn(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", lambda e: received.append(e))
        bus.emit(_event())
        bus.emit(_event())
        assert len(received) == 1
        bus.reset_chain()
        bus.emit(_event())
        assert len(received) == 2


class TestHandlerErrors:
    def test_exception_does_not_reach_emitter(self):
        bus = EventBus()
        received = []

        def broken(event: BusEvent):
            raise RuntimeError("boom")

        bus.subscribe("evt", broken)
        bus.subscribe("evt", lambda e: received.append(e))
        bus.emit(_event())
        assert len(received) == 1

    def test_clear(self):
        bus = EventBus()
        bus.subscribe("a", lambda e: None)
        bus.subscribe("b", lambda e: None)
        assert bus.handler_count == 2
        bus.clear()
        assert bus.handler_count == 0


class TestGameLoopEmits:
    def test_each_action_is_announced(self, make_game):
        game = make_game()
        seen = []
        game.bus.subscribe(EventTypes.ACTION_RESOLVED, lambda e: seen.append(e.data["action"]))
        game.execute_action("farm")
        game.execute_action("gather")
        game.execute_action("farm")
        # chain is reset after every action, so the repeat farm is not suppressed
        assert seen == ["farm", "gather", "farm"]

    def test_end_day_announces_day(self, make_game):
        game = make_game()
        ended = []
        game.bus.subscribe(EventTypes.DAY_ENDED, lambda e: ended.append(e.data["day"]))
        game.end_day()
        game.end_day()
        assert ended == [1, 2]
