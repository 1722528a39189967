"""
Pytest configuration and shared fixtures for the hd1-codegen test suite.
"""

import logging
import os
import shutil
import tempfile
import textwrap
from pathlib import Path

import pytest

from hd1_codegen.config import BuildConfig
from hd1_codegen.emitters import TemplateCache
from hd1_codegen.orchestrator import BuildOptions, BuildOrchestrator


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_output_dir():
    """Create a temporary directory for generated code output."""
    temp_dir = tempfile.mkdtemp(prefix="hd1gen_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def schema_dir(temp_output_dir):
    path = temp_output_dir / "schemas"
    path.mkdir()
    return path


@pytest.fixture
def handler_root(temp_output_dir):
    path = temp_output_dir / "handlers"
    path.mkdir()
    return path


@pytest.fixture
def out_dir(temp_output_dir):
    return temp_output_dir / "generated"


@pytest.fixture
def write_schema(schema_dir):
    """Factory fixture to write a schema fragment into the schema directory."""
    def _write(content: str, filename: str = "api.yaml") -> Path:
        file_path = schema_dir / filename
        file_path.write_text(textwrap.dedent(content))
        return file_path
    return _write


@pytest.fixture
def write_handler(handler_root):
    """Factory fixture to create a handler implementation file."""
    def _write(relative_path: str, content: str = "") -> Path:
        file_path = handler_root / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(textwrap.dedent(content))
        return file_path
    return _write


@pytest.fixture
def write_source(temp_output_dir):
    """Factory fixture to write a foreign source file (d.ts / js) into a named directory."""
    def _write(directory: str, filename: str, content: str) -> Path:
        file_path = temp_output_dir / directory / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(textwrap.dedent(content))
        return file_path
    return _write


@pytest.fixture(scope="session")
def templates():
    """Shared template cache (templates are read-only once loaded)."""
    return TemplateCache()


@pytest.fixture
def config():
    return BuildConfig()


@pytest.fixture
def run_build(schema_dir, handler_root, out_dir):
    """Factory fixture running the full pipeline with optional overrides."""
    def _run(**kwargs):
        options = BuildOptions(
            schema_dir=kwargs.pop("schema_dir", schema_dir),
            output_dir=kwargs.pop("output_dir", out_dir),
            handler_root=kwargs.pop("handler_root", handler_root),
            **kwargs,
        )
        return BuildOrchestrator(options).run()
    return _run


@pytest.fixture
def gen_records(caplog):
    """
    Capture records of the hd1.gen logger hierarchy.

    The hierarchy does not propagate to the root logger, so the capture
    handler is attached to it directly.
    """
    logger = logging.getLogger("hd1.gen")
    previous = logger.level
    logger.addHandler(caplog.handler)
    logger.setLevel(logging.DEBUG)
    yield caplog
    logger.removeHandler(caplog.handler)
    logger.setLevel(previous)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep HD1GEN_* settings from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("HD1GEN_"):
            monkeypatch.delenv(key, raising=False)


SESSIONS_SCHEMA = """
    openapi: 3.0.3
    info:
      title: HD1 Sessions
      version: "1.0"
    paths:
      /sessions:
        get:
          operationId: listSessions
          summary: List sessions
          x-handler: api/sessions/list.py
          x-function: list_sessions
          responses:
            "200":
              description: OK
        post:
          operationId: createSession
          summary: Create a session
          x-handler: api/sessions/create.py
          x-function: create_session
          requestBody:
            required: true
            content:
              application/json:
                schema:
                  $ref: "#/components/schemas/Session"
          responses:
            "200":
              description: Created
      /sessions/{sessionId}/entities/{entityId}:
        get:
          operationId: getEntity
          x-handler: api/entities/get.py
          x-function: get_entity
          responses:
            "200":
              description: OK
    components:
      schemas:
        Session:
          type: object
          properties:
            name:
              type: string
"""


@pytest.fixture
def sessions_schema():
    return SESSIONS_SCHEMA
