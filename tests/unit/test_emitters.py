"""
Unit tests for the route table and the three template emitters.
"""

import ast
import importlib.util
import json

import httpx
import pytest
from click.testing import CliRunner

from hd1_codegen.config import BuildConfig
from hd1_codegen.emitters import (
    CliEmitter,
    RouterEmitter,
    ScriptingClientEmitter,
    TemplateCache,
    build_route_table,
)
from hd1_codegen.emitters.capabilities import build_component_table
from hd1_codegen.emitters.base import docline
from hd1_codegen.errors import TemplateRenderError
from hd1_codegen.loader import load_fragments
from hd1_codegen.merger import merge_fragments
from hd1_codegen.model import HandlerBinding, Operation, PathItem
from hd1_codegen.synthesizers import ComponentCapabilityExtractor

LIBRARY = """
AFRAME.registerComponent('light-point', {
  schema: {
    color: {type: 'color', default: '#FFF'},
    intensity: {type: 'number', default: 1.0, min: 0, max: 10},
    mode: {default: 'point', oneOf: ['point', 'spot']}
  }
});
AFRAME.registerComponent('spin', {
  schema: {type: 'number', default: 2}
});
"""


def load_module(path, name):
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def registered_routes(source):
    """(method, path, name) of every add_api_route call in a generated router."""
    found = []
    for node in ast.walk(ast.parse(source)):
        if isinstance(node, ast.Call) and getattr(node.func, "attr", None) == "add_api_route":
            keywords = {kw.arg: kw.value for kw in node.keywords}
            methods = [m.value for m in keywords["methods"].elts]
            found.append((methods[0], node.args[0].value, keywords["name"].value))
    return found


@pytest.fixture
def sessions_spec(schema_dir, write_schema, sessions_schema):
    write_schema(sessions_schema, "sessions.yaml")
    return merge_fragments(load_fragments(schema_dir).fragments)


@pytest.fixture
def routes(sessions_spec):
    return build_route_table(sessions_spec, {"createSession"})


@pytest.fixture
def component_spec(schema_dir, write_schema, sessions_schema):
    write_schema(sessions_schema, "sessions.yaml")
    extractor = ComponentCapabilityExtractor()
    components = extractor.to_fragment(extractor.extract_text(LIBRARY, "lib.js"))
    return merge_fragments([components] + load_fragments(schema_dir).fragments)


class TestRouteTable:

    def test_sorted_by_path_then_method(self, routes):
        assert [(r.method, r.path) for r in routes] == [
            ("GET", "/sessions"),
            ("POST", "/sessions"),
            ("GET", "/sessions/{sessionId}/entities/{entityId}"),
        ]

    def test_route_fields(self, routes):
        list_route, create_route, get_route = routes
        assert list_route.handler_file == "api/sessions/list.py"
        assert list_route.handler_function == "list_sessions"
        assert not list_route.stub
        assert create_route.stub
        assert create_route.has_body and create_route.body_required
        assert [p.placeholder for p in get_route.params] == ["sessionId", "entityId"]
        assert [p.py_name for p in get_route.params] == ["session_id", "entity_id"]
        assert [p.js_name for p in get_route.params] == ["sessionId", "entityId"]
        assert get_route.required_arity == 2
        assert create_route.required_arity == 1

    def test_reserved_parameter_names(self, sessions_spec):
        sessions_spec.paths["/things/{class}/{body}"] = PathItem({
            "GET": Operation("getThing", "GET", "/things/{class}/{body}"),
        })
        route = [r for r in build_route_table(sessions_spec) if r.operation_id == "getThing"][0]
        assert [p.py_name for p in route.params] == ["class_", "body2"]
        assert [p.js_name for p in route.params] == ["classParam", "body"]
        assert route.stub

    def test_non_python_handler_becomes_stub(self, sessions_spec):
        create = sessions_spec.paths["/sessions"].operations_by_method["POST"]
        create.handler_binding = HandlerBinding("api/sessions/create.go", "create_session")

        route = [r for r in build_route_table(sessions_spec) if r.operation_id == "createSession"][0]
        assert route.stub
        assert route.handler_file == "api/sessions/create.go"


class TestRouterEmitter:

    def test_one_route_per_operation(self, sessions_spec, routes, templates, temp_output_dir):
        emitter = RouterEmitter(templates, BuildConfig(), handler_root=temp_output_dir / "handlers")
        source = emitter.render(sessions_spec, routes, temp_output_dir / "generated")

        assert registered_routes(source) == [
            ("GET", "/sessions", "listSessions"),
            ("POST", "/sessions", "createSession"),
            ("GET", "/sessions/{sessionId}/entities/{entityId}", "getEntity"),
        ]

    def test_stub_and_handler_bindings(self, sessions_spec, routes, templates, temp_output_dir):
        source = RouterEmitter(templates, BuildConfig()).render(sessions_spec, routes, temp_output_dir)

        assert "async def stub_create_session():" in source
        assert "status_code=501" in source
        assert "_resolve_handler('api/sessions/list.py', 'list_sessions')" in source
        assert "api/sessions/create.py" not in source

    def test_handler_root_is_relative(self, sessions_spec, routes, templates, temp_output_dir):
        emitter = RouterEmitter(templates, BuildConfig(), handler_root=temp_output_dir / "handlers")
        source = emitter.render(sessions_spec, routes, temp_output_dir / "generated")
        assert "'../handlers'" in source
        assert str(temp_output_dir) not in source

    def test_emit_is_idempotent(self, sessions_spec, routes, templates, temp_output_dir):
        emitter = RouterEmitter(templates, BuildConfig())
        first = emitter.emit(sessions_spec, routes, temp_output_dir)
        content = first.output_path.read_bytes()
        second = emitter.emit(sessions_spec, routes, temp_output_dir)

        assert first.changed is True
        assert second.changed is False
        assert first.output_path.name == "auto_router.py"
        assert second.output_path.read_bytes() == content


class TestCliEmitter:

    @pytest.fixture
    def client(self, sessions_spec, routes, templates, temp_output_dir):
        artifact = CliEmitter(templates, BuildConfig()).emit(sessions_spec, routes, temp_output_dir)
        return load_module(artifact.output_path, "generated_hd1_client")

    def test_one_subcommand_per_operation(self, client):
        assert sorted(client.cli.commands) == ["create-session", "get-entity", "list-sessions"]

    def test_arity_matches_path_parameters(self, client):
        params = client.cli.commands["get-entity"].params
        assert [p.name for p in params] == ["session_id", "entity_id"]
        assert all(p.required for p in params)

    def test_missing_argument_is_usage_error(self, client):
        result = CliRunner().invoke(client.cli, ["get-entity", "s1"])
        assert result.exit_code == 2

    def test_required_body(self, client):
        result = CliRunner().invoke(client.cli, ["create-session"])
        assert result.exit_code == 2

    def test_request_issued(self, client, monkeypatch):
        calls = []

        def fake_request(method, url, json=None, timeout=None):
            calls.append((method, url, json))
            return httpx.Response(200, json={"ok": True})

        monkeypatch.setattr(client.httpx, "request", fake_request)
        result = CliRunner().invoke(client.cli, ["get-entity", "s 1", "e2"])

        assert result.exit_code == 0, result.output
        assert calls == [("GET", client.API_BASE + "/sessions/s%201/entities/e2", None)]
        assert '"ok": true' in result.output

    def test_body_is_parsed_json(self, client, monkeypatch):
        calls = []
        monkeypatch.setattr(
            client.httpx, "request",
            lambda method, url, json=None, timeout=None: calls.append(json) or httpx.Response(201, json={}),
        )
        result = CliRunner().invoke(client.cli, ["create-session", '{"name": "demo"}'])
        assert result.exit_code == 0, result.output
        assert calls == [{"name": "demo"}]

    def test_invalid_json_body(self, client):
        result = CliRunner().invoke(client.cli, ["create-session", "{nope"])
        assert result.exit_code == 2
        assert "invalid JSON" in result.output


class TestScriptingClientEmitter:

    def test_one_method_per_operation(self, sessions_spec, routes, templates, temp_output_dir):
        source = ScriptingClientEmitter(templates, BuildConfig()).render(sessions_spec, routes, temp_output_dir)

        assert "class HD1Client {" in source
        assert "async listSessions() {" in source
        assert "async createSession(data = null) {" in source
        assert "async getEntity(sessionId, entityId) {" in source
        assert 'this.extractPathParams("/sessions/{sessionId}/entities/{entityId}"' in source
        assert "module.exports = { HD1Client };" in source

    def test_api_base_from_config(self, sessions_spec, routes, templates, temp_output_dir):
        config = BuildConfig(api_base="http://hd1.test/api")
        source = ScriptingClientEmitter(templates, config).render(sessions_spec, routes, temp_output_dir)
        assert '"http://hd1.test/api"' in source
        assert config.scripting_file == "hd1lib.js"


class TestComponentCapabilities:
    """x-component schemas are documented and checked by both clients."""

    @pytest.fixture
    def client(self, component_spec, templates, temp_output_dir):
        routes = build_route_table(component_spec)
        artifact = CliEmitter(templates, BuildConfig()).emit(component_spec, routes, temp_output_dir)
        return load_module(artifact.output_path, "generated_hd1_component_client")

    def test_component_table(self, component_spec):
        table = build_component_table(component_spec)

        assert [(c.name, c.schema_key) for c in table] == [
            ("light-point", "components_LightPoint"),
            ("spin", "components_Spin"),
        ]
        docs = [p.doc for p in table[0].properties]
        assert docs == [
            'color (color, default "#FFF")',
            "intensity (number, default 1.0, 0..10)",
            'mode (string, default "point", one of "point", "spot")',
        ]

    def test_cli_documents_properties(self, component_spec, templates, temp_output_dir):
        source = CliEmitter(templates, BuildConfig()).render(
            component_spec, build_route_table(component_spec), temp_output_dir
        )
        assert "#     intensity (number, default 1.0, 0..10)" in source
        assert "COMPONENTS = {" in source

    def test_cli_component_table(self, client):
        assert sorted(client.COMPONENTS) == ["light-point", "spin"]
        intensity = client.COMPONENTS["light-point"]["properties"]["intensity"]
        assert (intensity["default"], intensity["minimum"], intensity["maximum"]) == (1.0, 0, 10)
        assert "component" in client.cli.commands

    def test_cli_component_defaults_merged(self, client):
        result = CliRunner().invoke(client.cli, ["component", "light-point", '{"mode": "spot"}'])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"color": "#FFF", "intensity": 1.0, "mode": "spot"}

    def test_cli_component_values_checked(self, client):
        result = CliRunner().invoke(client.cli, ["component", "light-point", '{"intensity": 20, "glow": 1}'])

        assert result.exit_code == 2
        assert "unknown property 'glow'" in result.output
        assert "intensity must be <= 10" in result.output

    def test_cli_component_enum_checked(self, client):
        result = CliRunner().invoke(client.cli, ["component", "light-point", '{"mode": "flood"}'])
        assert result.exit_code == 2
        assert "mode must be one of" in result.output

    def test_cli_unknown_component(self, client):
        result = CliRunner().invoke(client.cli, ["component", "fog"])
        assert result.exit_code == 2

    def test_scripting_client_embeds_components(self, component_spec, templates, temp_output_dir):
        source = ScriptingClientEmitter(templates, BuildConfig()).render(
            component_spec, build_route_table(component_spec), temp_output_dir
        )

        assert 'const HD1_COMPONENTS = {"light-point": ' in source
        assert '"maximum": 10' in source
        assert " *     intensity (number, default 1.0, 0..10)" in source
        assert "buildComponent(name, values = {}) {" in source
        assert "module.exports = { HD1Client, HD1_COMPONENTS };" in source

    def test_no_component_helpers_without_components(self, sessions_spec, routes, templates, temp_output_dir):
        source = ScriptingClientEmitter(templates, BuildConfig()).render(sessions_spec, routes, temp_output_dir)
        assert "HD1_COMPONENTS" not in source
        assert "buildComponent" not in source


class TestTemplates:

    def test_cache_loads_each_template_once(self, sessions_spec, routes, temp_output_dir):
        cache = TemplateCache()
        emitter = CliEmitter(cache, BuildConfig())
        emitter.render(sessions_spec, routes, temp_output_dir)
        emitter.render(sessions_spec, routes, temp_output_dir)
        assert len(cache) == 1

    def test_render_failure(self, sessions_spec, routes, temp_output_dir):
        broken = temp_output_dir / "templates"
        broken.mkdir()
        (broken / "cli_client.py.jinja").write_text("{{ no_such_value }}")

        with pytest.raises(TemplateRenderError) as exc_info:
            CliEmitter(TemplateCache(broken), BuildConfig()).render(sessions_spec, routes, temp_output_dir)
        assert exc_info.value.kind == "cli"

    def test_docline(self):
        assert docline("multi\n  line") == "multi line"
        assert '"""' not in docline('say """hi"""')
        assert docline('ends "quoted"').endswith(" ")
