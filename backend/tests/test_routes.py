"""Tests for the REST API and progress websocket."""
import threading

import pytest
from fastapi.testclient import TestClient

from nodeflow.engine.persistence import MemoryStore, PersistenceMirror
from nodeflow.engine.state import get_engine, get_progress, init_engine, shutdown_engine
from nodeflow.main import app

from conftest import RecordingBackendClient


def node_payload(node_id: str, params: dict) -> dict:
    return {"id": node_id, "module": "core", "action": node_id.lower(), "params": params}


@pytest.fixture
def api():
    backend = RecordingBackendClient()
    init_engine(mirror=PersistenceMirror(MemoryStore()), client=backend)
    client = TestClient(app)
    client.backend = backend
    yield client
    shutdown_engine()
    get_progress().clear()


@pytest.fixture
def wired(api):
    api.post("/api/graph/nodes", json=node_payload("A", {"out": {"type": "image", "display": "output"}}))
    api.post("/api/graph/nodes", json=node_payload("C", {"out": {"type": "image", "display": "output"}}))
    api.post("/api/graph/nodes", json=node_payload("B", {
        "x": {"type": "image", "spawn": True},
        "steps": {"type": "int", "default": 20},
    }))
    api.post("/api/graph/connect", json={"source": "A", "sourceHandle": "out", "target": "B", "targetHandle": "x"})
    return api


class TestGraphRoutes:
    def test_add_node_seeds_defaults(self, wired):
        graph = wired.get("/api/graph").json()
        b = next(n for n in graph["nodes"] if n["id"] == "B")
        assert b["params"]["steps"]["value"] == 20

    def test_duplicate_node_conflict(self, wired):
        resp = wired.post("/api/graph/nodes", json=node_payload("A", {}))
        assert resp.status_code == 409

    def test_connect_spawns_and_exports(self, wired):
        resp = wired.post("/api/graph/connect", json={
            "source": "C", "sourceHandle": "out", "target": "B", "targetHandle": "x",
        })
        assert resp.json()["targetHandle"] == "x[1]"

        export = wired.get("/api/graph/export", params={"sid": "abc"}).json()
        assert export["sid"] == "abc"
        assert export["paths"] == [["A", "C", "B"]]
        assert export["nodes"]["B"]["params"]["x[1]"] == {
            "sourceId": "C", "sourceKey": "out", "type": "image",
        }
        assert "out" not in export["nodes"]["A"]["params"]

    def test_disconnect_edge(self, wired):
        edge = wired.post("/api/graph/connect", json={
            "source": "C", "sourceHandle": "out", "target": "B", "targetHandle": "x",
        }).json()
        graph = wired.delete(f"/api/graph/edges/{edge['id']}").json()
        b = next(n for n in graph["nodes"] if n["id"] == "B")
        assert list(b["params"]) == ["x", "steps"]
        assert wired.delete("/api/graph/edges/missing").status_code == 404

    def test_remove_node_change(self, wired):
        graph = wired.post("/api/graph/nodes/changes", json=[{"type": "remove", "id": "A"}]).json()
        assert [n["id"] for n in graph["nodes"]] == ["C", "B"]
        assert graph["edges"] == []
        get_engine().wait_pending()
        assert wired.backend.calls == [["A"]]

    def test_edge_changes(self, wired):
        edge_id = wired.get("/api/graph").json()["edges"][0]["id"]
        graph = wired.post("/api/graph/edges/changes", json=[
            {"type": "select", "id": edge_id, "selected": True},
        ]).json()
        assert graph["edges"][0]["selected"] is True

    def test_param_field_round_trip(self, wired):
        resp = wired.put("/api/graph/nodes/B/params/steps", json={"value": 35})
        assert resp.status_code == 200
        read = wired.get("/api/graph/nodes/B/params/steps").json()
        assert read["value"] == 35
        assert wired.get("/api/graph/nodes/B/params/ghost").status_code == 404
        assert wired.put("/api/graph/nodes/ghost/params/steps", json={"value": 1}).status_code == 404

    def test_group_field(self, wired):
        node = wired.put("/api/graph/nodes/B/params/advanced", json={
            "value": {"open": False}, "field": "group",
        }).json()
        assert node["groups"]["advanced"]["open"] is False

    def test_executed_and_clear_cache(self, wired):
        node = wired.post("/api/graph/nodes/B/executed", json={"cache": True, "time": 1.2, "memory": 64}).json()
        assert node["cache"] is True
        assert wired.delete("/api/graph/nodes/B/cache").json() == {"cleared": True}
        b = next(n for n in wired.get("/api/graph").json()["nodes"] if n["id"] == "B")
        assert b["cache"] is False
        assert b["time"] == 0

    def test_clear_cache_updates_graph_off_the_worker_thread(self, wired, monkeypatch):
        engine = get_engine()
        threads = {}

        def clear_node_cache(node_id):
            threads["request"] = threading.get_ident()
            return True

        mark_executed = engine.mark_executed

        def record_mark_executed(*args):
            threads["write"] = threading.get_ident()
            mark_executed(*args)

        monkeypatch.setattr(engine.client, "clear_node_cache", clear_node_cache)
        monkeypatch.setattr(engine, "mark_executed", record_mark_executed)

        assert wired.delete("/api/graph/nodes/B/cache").json() == {"cleared": True}
        assert threads["write"] != threads["request"]

    def test_viewport(self, wired):
        wired.put("/api/graph/viewport", json={"x": 1, "y": 2, "zoom": 1.5})
        assert wired.get("/api/graph").json()["viewport"] == {"x": 1.0, "y": 2.0, "zoom": 1.5}

    def test_undo_redo(self, wired):
        graph = wired.post("/api/graph/undo").json()
        assert graph["edges"] == []
        graph = wired.post("/api/graph/redo").json()
        assert len(graph["edges"]) == 1


class TestProgressRoutes:
    def test_default_progress(self, api):
        assert api.get("/api/progress/n1").json() == {"value": 0.0, "type": "determinate"}

    def test_websocket_updates_progress(self, api):
        with api.websocket_connect("/ws/progress/s1") as ws:
            ws.send_json({"type": "progress", "nodeId": "n1", "value": 50, "progressType": "indeterminate"})
            ws.send_text("not json")
            ws.send_json({"type": "progress", "nodeId": "n2", "value": 5})
        assert api.get("/api/progress/n1").json() == {"value": 50.0, "type": "indeterminate"}
