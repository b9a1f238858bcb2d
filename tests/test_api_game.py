"""Tests for game API endpoints."""

import pytest
from fastapi.testclient import TestClient

from src.core.item.catalog import ItemCatalog
from src.core.rng import SequenceRNG
from src.main import app
from src.services.save_gateway import InMemorySaveGateway


@pytest.fixture()
def session_id(client: TestClient) -> str:
    """A registered session whose dice always miss (0.99)."""
    return app.state.session_registry.create("Kira", "Windveil", rng=SequenceRNG(default=0.99))


def _game(session_id: str):
    return app.state.session_registry.get(session_id)


class TestNewGame:
    def test_new_game(self, client: TestClient):
        response = client.post("/game/new", json={"player_name": "Kira", "tribe_name": "Windveil"})

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"]
        assert data["day"] == 1
        assert data["player"]["name"] == "Kira"
        assert data["tribe"]["name"] == "Windveil"
        assert data["decision_state"] == "idle"
        assert data["pending_encounter"] is None
        assert {npc["id"] for npc in data["npcs"]} >= {"grok", "mara", "tarek"}

    def test_defaults(self, client: TestClient):
        data = client.post("/game/new", json={}).json()
        assert data["config"]["difficulty"] == "Normal"
        assert data["tribe"]["name"] == "Stonefang"

    def test_difficulty(self, client: TestClient):
        data = client.post("/game/new", json={"difficulty": "Easy"}).json()
        assert data["config"]["difficulty"] == "Easy"
        assert data["config"]["base_stamina"] == 7

    def test_unknown_difficulty(self, client: TestClient):
        response = client.post("/game/new", json={"difficulty": "Nightmare"})
        assert response.status_code == 400

    def test_blank_name_rejected(self, client: TestClient):
        response = client.post("/game/new", json={"player_name": ""})
        assert response.status_code == 422


class TestSessionLifecycle:
    def test_get(self, client: TestClient, session_id: str):
        response = client.get(f"/game/{session_id}")
        assert response.status_code == 200
        assert response.json()["player"]["name"] == "Kira"

    def test_unknown_session(self, client: TestClient):
        assert client.get("/game/missing").status_code == 404
        assert client.post("/game/missing/action", json={"action_type": "farm"}).status_code == 404
        assert client.post("/game/missing/end-day").status_code == 404

    def test_delete(self, client: TestClient, session_id: str):
        assert client.delete(f"/game/{session_id}").status_code == 200
        assert client.get(f"/game/{session_id}").status_code == 404
        assert client.delete(f"/game/{session_id}").status_code == 404


class TestActions:
    def test_farm_spends_stamina(self, client: TestClient, session_id: str):
        response = client.post(f"/game/{session_id}/action", json={"action_type": "farm"})

        assert response.status_code == 200
        data = response.json()
        assert data["day"] == 1
        assert data["player"]["stamina"] == 4
        assert data["outcome"]["success"] is False
        assert data["outcome"]["error"] is None

    def test_unknown_action_is_rejected_outcome(self, client: TestClient, session_id: str):
        response = client.post(f"/game/{session_id}/action", json={"action_type": "dance"})

        assert response.status_code == 200
        outcome = response.json()["outcome"]
        assert outcome["success"] is False
        assert outcome["error"] == "validation"
        assert response.json()["player"]["stamina"] == 5

    def test_out_of_stamina(self, client: TestClient, session_id: str):
        for _ in range(5):
            client.post(f"/game/{session_id}/action", json={"action_type": "gather"})
        outcome = client.post(
            f"/game/{session_id}/action", json={"action_type": "gather"}
        ).json()["outcome"]
        assert outcome["error"] == "state"

    def test_decision_without_encounter(self, client: TestClient, session_id: str):
        outcome = client.post(
            f"/game/{session_id}/action",
            json={"action_type": "explore", "combat_decision": "fight"},
        ).json()["outcome"]
        assert outcome["error"] == "validation"

    def test_visit_unknown_npc(self, client: TestClient, session_id: str):
        outcome = client.post(
            f"/game/{session_id}/action", json={"action_type": "visit", "npc_id": "nobody"}
        ).json()["outcome"]
        assert outcome["error"] == "validation"

    def test_end_day(self, client: TestClient, session_id: str):
        client.post(f"/game/{session_id}/action", json={"action_type": "farm"})
        response = client.post(f"/game/{session_id}/end-day")

        assert response.status_code == 200
        data = response.json()
        assert data["day"] == 2
        assert data["report"]["day"] == 2
        assert data["player"]["stamina"] == 5


class TestItems:
    def test_equip_missing_item(self, client: TestClient, session_id: str):
        data = client.post(f"/game/{session_id}/equip", json={"item_id": "hunting_bow"}).json()
        assert data["outcome"]["success"] is False
        assert data["outcome"]["error"] == "validation"

    def test_equip_and_unequip(self, client: TestClient, session_id: str):
        game = _game(session_id)
        game.player.add_to_bag(ItemCatalog(SequenceRNG()).find_template("hunting_bow"))

        data = client.post(f"/game/{session_id}/equip", json={"item_id": "hunting_bow"}).json()
        assert data["outcome"]["success"] is True
        assert data["player"]["equipment"]["weapon"]["id"] == "hunting_bow"

        data = client.post(f"/game/{session_id}/unequip", json={"slot": "weapon"}).json()
        assert data["outcome"]["success"] is True
        assert data["player"]["equipment"]["weapon"] is None

    def test_unequip_unknown_slot(self, client: TestClient, session_id: str):
        data = client.post(f"/game/{session_id}/unequip", json={"slot": "tail"}).json()
        assert data["outcome"]["error"] == "validation"

    def test_consume_missing_item(self, client: TestClient, session_id: str):
        data = client.post(f"/game/{session_id}/consume", json={"item_id": "berries"}).json()
        assert data["outcome"]["error"] == "validation"


class TestNPCs:
    def test_list(self, client: TestClient, session_id: str):
        data = client.get(f"/game/{session_id}/npcs").json()
        assert {npc["id"] for npc in data["npcs"]} >= {"grok", "mara", "oru", "bren"}

    def test_list_by_tribe(self, client: TestClient, session_id: str):
        response = client.get(f"/game/{session_id}/npcs", params={"tribe": "Windveil"})
        assert response.status_code == 200
        assert [npc["id"] for npc in response.json()["npcs"]] == ["oru"]

    def test_detail_with_reaction(self, client: TestClient, session_id: str):
        response = client.get(f"/game/{session_id}/npcs/grok")

        assert response.status_code == 200
        data = response.json()
        assert data["npc"]["name"] == "Grok"
        assert data["relationship"] == 50
        # cha 3 * 2 + 50 + jitter 9.8
        assert data["reaction"]["level"] == "Friendly"

    def test_unknown_npc(self, client: TestClient, session_id: str):
        assert client.get(f"/game/{session_id}/npcs/nobody").status_code == 404
        assert client.get("/game/missing/npcs").status_code == 404


class TestChronicle:
    def test_records_actions_and_days(self, client: TestClient, session_id: str):
        client.post(f"/game/{session_id}/action", json={"action_type": "farm"})
        client.post(f"/game/{session_id}/end-day")

        response = client.get(f"/game/{session_id}/chronicle")
        assert response.status_code == 200
        texts = [entry["text"] for entry in response.json()["entries"]]
        assert "Farm failed." in texts
        assert texts[-1] == "Day 1 came to an end."

    def test_limit(self, client: TestClient, session_id: str):
        for _ in range(3):
            client.post(f"/game/{session_id}/end-day")
        entries = client.get(f"/game/{session_id}/chronicle", params={"limit": 1}).json()["entries"]
        assert entries == [{"day": 3, "kind": "day_end", "text": "Day 3 came to an end."}]

    def test_negative_limit(self, client: TestClient, session_id: str):
        assert client.get(f"/game/{session_id}/chronicle", params={"limit": -1}).status_code == 422

    def test_unknown_session(self, client: TestClient):
        assert client.get("/game/missing/chronicle").status_code == 404


class TestConfig:
    def test_patch_reports_rejected_keys(self, client: TestClient, session_id: str):
        response = client.patch(
            f"/game/{session_id}/config",
            json={"settings": {"xp_multiplier": 2, "bogus": 1, "encounter_chance": "lots"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert sorted(data["rejected"]) == ["bogus", "encounter_chance"]
        assert data["config"]["xp_multiplier"] == 2
        assert data["config"]["difficulty"] == "Custom"

    def test_preset(self, client: TestClient, session_id: str):
        data = client.post(f"/game/{session_id}/difficulty", json={"difficulty": "Hard"}).json()
        assert data["config"]["difficulty"] == "Hard"
        assert data["config"]["base_stamina"] == 4

    def test_custom_is_not_a_preset(self, client: TestClient, session_id: str):
        response = client.post(f"/game/{session_id}/difficulty", json={"difficulty": "Custom"})
        assert response.status_code == 400


class TestPersistence:
    def test_save_list_load_delete(self, client: TestClient, session_id: str):
        client.post(f"/game/{session_id}/end-day")
        saved = client.post(f"/game/{session_id}/save").json()
        assert saved["success"] is True
        handle = saved["handle"]

        saves = client.get("/game/saves").json()
        assert [s["handle"] for s in saves] == [handle]
        assert saves[0]["character_name"] == "Kira"
        assert saves[0]["day"] == 2

        loaded = client.post(f"/game/load/{handle}").json()
        assert loaded["day"] == 2
        assert loaded["session_id"] != session_id
        state = client.get(f"/game/{loaded['session_id']}").json()
        assert state["player"]["name"] == "Kira"

    def test_load_missing(self, client: TestClient):
        assert client.post("/game/load/no-such-save").status_code == 404

    def test_memory_backend(self, client: TestClient, session_id: str):
        app.state.save_gateway = InMemorySaveGateway()
        handle = client.post(f"/game/{session_id}/save").json()["handle"]

        assert [s["handle"] for s in client.get("/game/saves").json()] == [handle]
        assert client.post(f"/game/load/{handle}").status_code == 200
