"""
Schema fragment loader.

Reads every schema document of a directory into a SchemaFragment, in sorted
filename order. The merger's last-writer-wins policy depends on this order,
so it must never follow filesystem iteration order.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

from .errors import SchemaParseError
from .gen_logging import get_logger
from .model import HTTP_METHODS, SchemaFragment

logger = get_logger(__name__)

SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")


@dataclass
class LoadResult:
    fragments: List[SchemaFragment] = field(default_factory=list)
    errors: List[SchemaParseError] = field(default_factory=list)


def load_fragments(directory: Path) -> LoadResult:
    """
    Load all schema fragments from ``directory``.

    A malformed file is recorded as a SchemaParseError and excluded; the
    remaining files are still loaded.
    """
    directory = Path(directory)
    result = LoadResult()

    if not directory.is_dir():
        result.errors.append(SchemaParseError(str(directory), "schema directory not found"))
        return result

    files = sorted(
        (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in SCHEMA_SUFFIXES),
        key=lambda p: p.name,
    )
    logger.info(f"[LOAD] {len(files)} schema file(s) in {directory}")

    seen = {}
    for path in files:
        # core.yaml and core.yml would share one component namespace
        if path.stem in seen:
            err = SchemaParseError(path.name, f"fragment name '{path.stem}' already used by {seen[path.stem]}")
            logger.warning(f"  [WARN] Skipping {err}")
            result.errors.append(err)
            continue
        seen[path.stem] = path.name
        try:
            result.fragments.append(load_fragment(path))
        except SchemaParseError as exc:
            logger.warning(f"  [WARN] Skipping {exc}")
            result.errors.append(exc)

    return result


def load_fragment(path: Path) -> SchemaFragment:
    """Parse one schema file; raises SchemaParseError on any structural problem."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SchemaParseError(path.name, f"cannot read file: {exc}") from exc

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaParseError(path.name, f"invalid YAML: {exc}") from exc

    if not isinstance(document, dict):
        raise SchemaParseError(path.name, "top level must be a mapping")

    check_fragment_shape(path.name, document)
    logger.debug(f"  [OK] {path.name}: {len(document.get('paths') or {})} path(s)")
    return SchemaFragment(name=path.stem, source_path=str(path), raw_document=document)


def check_fragment_shape(filename: str, document: dict) -> None:
    """Structural checks shared by hand-written and synthesized fragments."""
    paths = document.get("paths")
    if paths is None:
        paths = {}
    if not isinstance(paths, dict):
        raise SchemaParseError(filename, "'paths' must be a mapping")

    for route, methods in paths.items():
        if not isinstance(route, str) or not route.startswith("/"):
            raise SchemaParseError(filename, f"path {route!r} must start with '/'")
        if methods is None:
            continue
        if not isinstance(methods, dict):
            raise SchemaParseError(filename, f"path '{route}' must map methods to operations")
        for method, operation in methods.items():
            # summary, description, servers, parameters, x-* ...
            if str(method).upper() not in HTTP_METHODS:
                continue
            if not isinstance(operation, dict):
                raise SchemaParseError(filename, f"{str(method).upper()} {route}: operation must be a mapping")
            if not operation.get("operationId"):
                raise SchemaParseError(filename, f"{str(method).upper()} {route}: missing operationId")

    components = document.get("components")
    if components is not None and not isinstance(components, dict):
        raise SchemaParseError(filename, "'components' must be a mapping")
    schemas = (components or {}).get("schemas")
    if schemas is not None and not isinstance(schemas, dict):
        raise SchemaParseError(filename, "'components.schemas' must be a mapping")
