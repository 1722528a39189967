"""
Integration tests serving the generated request router with FastAPI.
"""

import importlib.util

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


def load_router(path):
    spec = importlib.util.spec_from_file_location("generated_auto_router", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.router


@pytest.fixture
def client(run_build, write_schema, write_handler, sessions_schema, out_dir, monkeypatch):
    monkeypatch.delenv("HD1_HANDLER_ROOT", raising=False)
    write_schema(sessions_schema, "sessions.yaml")
    write_handler(
        "api/sessions/list.py",
        """
        def list_sessions():
            return [{"name": "lobby"}]
        """,
    )
    write_handler(
        "api/entities/get.py",
        """
        def get_entity(sessionId: str, entityId: str):
            return {"session": sessionId, "entity": entityId}
        """,
    )

    report = run_build()
    assert report.ok, report.format()

    app = FastAPI()
    app.include_router(load_router(out_dir / "auto_router.py"))
    return TestClient(app)


class TestGeneratedRouter:

    def test_bound_handler(self, client):
        response = client.get("/sessions")
        assert response.status_code == 200
        assert response.json() == [{"name": "lobby"}]

    def test_path_parameters_forwarded(self, client):
        response = client.get("/sessions/s1/entities/e7")
        assert response.status_code == 200
        assert response.json() == {"session": "s1", "entity": "e7"}

    def test_stub_answers_not_implemented(self, client):
        response = client.post("/sessions", json={"name": "new"})
        assert response.status_code == 501
        assert response.json()["detail"] == "createSession is not implemented"

    def test_undeclared_method(self, client):
        assert client.delete("/sessions").status_code == 405

    def test_operation_ids_exposed(self, client):
        operation_ids = {
            op["operationId"]
            for item in client.get("/openapi.json").json()["paths"].values()
            for op in item.values()
        }
        assert operation_ids == {"listSessions", "createSession", "getEntity"}


class TestForeignHandler:
    """A handler written in another language is served by a stub, not imported."""

    def test_go_handler_answers_not_implemented(self, run_build, write_schema, write_handler, sessions_schema,
                                                out_dir, monkeypatch):
        monkeypatch.delenv("HD1_HANDLER_ROOT", raising=False)
        write_schema(sessions_schema.replace("api/sessions/create.py", "api/sessions/create.go"), "sessions.yaml")
        write_handler("api/sessions/list.py", "def list_sessions():\n    return []\n")
        write_handler("api/sessions/create.go", "package sessions\n\nfunc CreateSession() {}\n")
        write_handler("api/entities/get.py", "def get_entity(sessionId: str, entityId: str):\n    return {}\n")

        report = run_build(overrides={"strict_validation": True})
        assert report.ok, report.format()

        app = FastAPI()
        app.include_router(load_router(out_dir / "auto_router.py"))
        client = TestClient(app)

        assert client.get("/sessions").json() == []
        response = client.post("/sessions", json={"name": "new"})
        assert response.status_code == 501
        assert response.json()["detail"] == "createSession is not implemented"
