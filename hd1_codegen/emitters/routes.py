"""
Route table shared by all emitters.

Routes are sorted by path, then method, and carry every derived identifier
the templates need, so templates never compute names themselves.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Set, Tuple

from ..errors import DuplicateOperationIDError
from ..model import UnifiedSpecification
from ..utils.naming import camel_case, kebab_case, python_identifier, snake_case

_JS_RESERVED = frozenset(
    "break case catch class const continue debugger default delete do else enum export extends "
    "false finally for function if import in instanceof new null return super switch this throw "
    "true try typeof var void while with yield let static implements interface package private "
    "protected public await arguments eval".split()
)

BODY_ARGUMENT = "body"


@dataclass(frozen=True)
class PathParam:
    placeholder: str   # name inside {...} in the route path
    py_name: str       # CLI function argument
    js_name: str       # scripting client argument


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    operation_id: str
    summary: str = ""
    params: Tuple[PathParam, ...] = field(default_factory=tuple)
    has_body: bool = False
    body_required: bool = False
    handler_file: str = ""
    handler_function: str = ""
    stub: bool = False

    @property
    def subcommand(self) -> str:
        return kebab_case(self.operation_id)

    @property
    def client_method(self) -> str:
        return camel_case(self.operation_id)

    @property
    def python_name(self) -> str:
        return python_identifier(self.operation_id)

    @property
    def stub_function(self) -> str:
        return f"stub_{self.python_name}"

    @property
    def required_arity(self) -> int:
        """Positional CLI arguments that must be supplied."""
        return len(self.params) + (1 if self.body_required else 0)

    @property
    def comment(self) -> str:
        return f"{self.method} {self.path} - {self.summary}" if self.summary else f"{self.method} {self.path}"


def build_route_table(spec: UnifiedSpecification, stub_operations: Iterable[str] = ()) -> List[Route]:
    """Deterministic route table: sorted by path, then method."""
    stubs: Set[str] = set(stub_operations)
    routes = []
    for op in sorted(spec.operations(), key=lambda o: (o.path, o.method)):
        binding = op.handler_binding
        routes.append(
            Route(
                method=op.method,
                path=op.path,
                operation_id=op.operation_id,
                summary=" ".join(op.summary.split()),
                params=_path_params(op.path_parameters),
                has_body=op.has_request_body,
                body_required=op.has_request_body and op.request_body_required,
                handler_file=binding.implementation_file_path if binding else "",
                handler_function=(binding.function_name or snake_case(op.operation_id)) if binding else "",
                stub=binding is None or not binding.is_python_module or op.operation_id in stubs,
            )
        )
    return routes


def _path_params(placeholders: List[str]) -> Tuple[PathParam, ...]:
    used_py = {BODY_ARGUMENT}
    used_js = {"data"}
    params = []
    for placeholder in placeholders:
        py_name = _unique(python_identifier(placeholder), used_py)
        js_name = camel_case(placeholder) or "param"
        if js_name in _JS_RESERVED or js_name[0].isdigit():
            js_name = f"{js_name}Param" if not js_name[0].isdigit() else f"p{js_name}"
        js_name = _unique(js_name, used_js)
        params.append(PathParam(placeholder, py_name, js_name))
    return tuple(params)


def _unique(name: str, used: Set[str]) -> str:
    candidate, n = name, 2
    while candidate in used:
        candidate = f"{name}{n}"
        n += 1
    used.add(candidate)
    return candidate


# Names the client templates already use for their own helpers.
RESERVED_NAMES: Dict[str, Set[str]] = {
    "subcommand": {"component"},
    "client method": {"constructor", "request", "extractPathParams", "componentDefaults", "buildComponent"},
}

NAME_TRANSFORMS: Dict[str, Callable[[Route], str]] = {
    "subcommand": lambda r: r.subcommand,
    "client method": lambda r: r.client_method,
    "python function": lambda r: r.python_name,
}


def check_generated_names(routes: Iterable[Route]) -> None:
    """
    Raise DuplicateOperationIDError when distinct operationIds collapse to
    the same generated identifier (e.g. 'listSessions' and 'list_sessions'),
    or onto a name the client templates keep for themselves.
    """
    routes = list(routes)
    duplicates: Dict[str, List[str]] = {}
    for label, transform in NAME_TRANSFORMS.items():
        owners = defaultdict(set)
        for route in routes:
            owners[transform(route)].add(route.operation_id)
        for name, op_ids in owners.items():
            if name in RESERVED_NAMES.get(label, ()):
                duplicates[f"{label} {name}"] = sorted(op_ids) + ["(reserved)"]
            elif len(op_ids) > 1:
                duplicates[f"{label} {name}"] = sorted(op_ids)
    if duplicates:
        raise DuplicateOperationIDError(duplicates)
