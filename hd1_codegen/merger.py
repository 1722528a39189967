"""
Schema merger.

Combines hand-written and synthesized fragments, in their stable load order,
into one UnifiedSpecification.

Policies:
    - same path, different methods  -> method maps are unioned
    - same path, same method        -> later fragment wins (logged at INFO),
                                       or PathConflictError when configured
    - shared sub-schemas            -> stored as "<fragment>_<name>", with
                                       $ref pointers rewritten accordingly
    - same namespaced key twice     -> SchemaNameCollisionError
    - duplicate operationId         -> DuplicateOperationIDError (always fatal)

Every fatal condition is checked before anything is raised.
"""

import copy
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from .errors import (
    CodegenError,
    DuplicateOperationIDError,
    MergeError,
    PathConflictError,
    SchemaNameCollisionError,
)
from .gen_logging import get_logger
from .model import (
    HTTP_METHODS,
    HandlerBinding,
    Operation,
    PathConflict,
    PathItem,
    SchemaFragment,
    UnifiedSpecification,
)

logger = get_logger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"


def namespaced_name(fragment_name: str, original: str) -> str:
    return f"{fragment_name}_{original}"


def merge_fragments(
    fragments: Iterable[SchemaFragment],
    path_conflicts: str = "override",
) -> UnifiedSpecification:
    """
    Merge fragments into a UnifiedSpecification.

    Args:
        fragments: Fragments in stable load order (later ones win collisions).
        path_conflicts: "override" (last writer wins) or "error".

    Raises:
        SchemaNameCollisionError: two fragments map to the same namespaced component key.
        PathConflictError: same path + method in two fragments, "error" mode only.
        DuplicateOperationIDError: any operationId used by more than one operation.
        MergeError: more than one of the above; all are checked before raising.
    """
    spec = UnifiedSpecification()
    fragments = list(fragments)
    logger.info(f"[MERGE] Merging {len(fragments)} fragment(s)")

    owners: Dict[str, str] = {}
    collisions: List[tuple] = []
    for fragment in fragments:
        _merge_fragment(spec, fragment, owners, collisions)
    spec.code_generation = code_generation_block(fragments)

    errors: List[CodegenError] = []
    if collisions:
        errors.append(SchemaNameCollisionError(collisions))
    if spec.conflicts and path_conflicts == "error":
        errors.append(PathConflictError(spec.conflicts))
    try:
        check_unique_operation_ids(spec.operations())
    except DuplicateOperationIDError as exc:
        errors.append(exc)

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise MergeError(errors)

    logger.info(
        f"[MERGE] {len(spec.paths)} path(s), {sum(1 for _ in spec.operations())} operation(s), "
        f"{len(spec.components)} shared schema(s)"
    )
    return spec


def code_generation_block(fragments: Iterable[SchemaFragment]) -> Dict[str, Any]:
    """Merged ``x-code-generation`` settings; later fragments override earlier ones."""
    block: Dict[str, Any] = {}
    for fragment in fragments:
        block.update(fragment.raw_document.get("x-code-generation") or {})
    return block


def _merge_fragment(
    spec: UnifiedSpecification,
    fragment: SchemaFragment,
    owners: Dict[str, str],
    collisions: List[tuple],
) -> None:
    document = copy.deepcopy(fragment.raw_document)
    schemas = ((document.get("components") or {}).get("schemas") or {})
    renames = {name: namespaced_name(fragment.name, name) for name in schemas}
    document = rewrite_refs(document, renames)

    spec.sources.append(fragment.name)
    spec.info.update(document.get("info") or {})

    for name in sorted(schemas):
        key = renames[name]
        if key in owners:
            logger.error(f"  [ERROR] Component '{key}' produced by '{owners[key]}' and '{fragment.name}'")
            collisions.append((key, owners[key], fragment.name))
            continue
        owners[key] = fragment.name
        spec.components[key] = document["components"]["schemas"][name]

    for path, methods in (document.get("paths") or {}).items():
        methods = methods or {}
        shared_params = methods.get("parameters") or []
        item = spec.paths.setdefault(path, PathItem())
        for method, raw_op in methods.items():
            method = str(method).upper()
            if method not in HTTP_METHODS:
                continue
            operation = build_operation(path, method, raw_op, fragment.name, shared_params)
            previous = item.operations_by_method.get(method)
            if previous is not None:
                conflict = PathConflict(path, method, previous.source, fragment.name)
                spec.conflicts.append(conflict)
                logger.info(
                    f"[MERGE] {method} {path}: '{fragment.name}' overrides '{previous.source}' "
                    f"({previous.operation_id} -> {operation.operation_id})"
                )
            item.operations_by_method[method] = operation


def build_operation(
    path: str,
    method: str,
    raw: Dict[str, Any],
    source: str,
    shared_params: Optional[List[Dict[str, Any]]] = None,
) -> Operation:
    """Build an Operation from a raw OpenAPI operation object."""
    # Operation-level parameters override path-level ones with the same (name, in)
    params: Dict[tuple, Dict[str, Any]] = {}
    for p in list(shared_params or []) + list(raw.get("parameters") or []):
        if isinstance(p, dict):
            params[(p.get("name"), p.get("in"))] = p

    body_schema = None
    body_required = False
    body = raw.get("requestBody")
    if isinstance(body, dict):
        body_required = bool(body.get("required", False))
        body_schema = _pick_body_schema(body.get("content") or {})

    binding = None
    handler_path = raw.get("x-handler")
    if handler_path:
        binding = HandlerBinding(
            implementation_file_path=str(handler_path),
            function_name=str(raw.get("x-function") or ""),
        )

    return Operation(
        operation_id=str(raw.get("operationId", "")),
        method=method,
        path=path,
        summary=str(raw.get("summary") or ""),
        parameters=list(params.values()),
        request_body_schema=body_schema,
        request_body_required=body_required,
        responses={str(k): v for k, v in (raw.get("responses") or {}).items()},
        handler_binding=binding,
        source=source,
    )


def _pick_body_schema(content: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for content_type in ("application/json", "multipart/form-data"):
        if content_type in content:
            return (content[content_type] or {}).get("schema") or {}
    for media in content.values():
        return (media or {}).get("schema") or {}
    # requestBody without content still declares a body
    return {}


def rewrite_refs(node: Any, renames: Dict[str, str]) -> Any:
    """Return ``node`` with local schema references renamed to namespaced keys."""
    if not renames:
        return node
    if isinstance(node, dict):
        out = {}
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                out[key] = _rename_ref(value, renames)
            elif key == "discriminator" and isinstance(value, dict) and isinstance(value.get("mapping"), dict):
                disc = dict(value)
                disc["mapping"] = {k: _rename_ref(v, renames) for k, v in value["mapping"].items()}
                out[key] = disc
            else:
                out[key] = rewrite_refs(value, renames)
        return out
    if isinstance(node, list):
        return [rewrite_refs(v, renames) for v in node]
    return node


def _rename_ref(ref: str, renames: Dict[str, str]) -> str:
    if ref.startswith(SCHEMA_REF_PREFIX):
        name = ref[len(SCHEMA_REF_PREFIX):]
        if name in renames:
            return SCHEMA_REF_PREFIX + renames[name]
    return ref


def check_unique_operation_ids(operations: Iterable[Operation]) -> None:
    """Raise DuplicateOperationIDError naming every operation of each shared id."""
    owners = defaultdict(list)
    for op in operations:
        owners[op.operation_id].append(op.describe())
    duplicates = {op_id: found for op_id, found in owners.items() if len(found) > 1}
    if duplicates:
        raise DuplicateOperationIDError(duplicates)
