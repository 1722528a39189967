"""
Type-definition scanner.

Reads TypeScript declaration files (three.js style ``*.d.ts``) and
synthesizes one schema fragment exposing every declared constructor as a
variant of a discriminated request payload:

    export class BoxGeometry extends BufferGeometry {
        /**
         * @param width Width of the box. Optional; Default `1`.
         */
        constructor(width?: number, height?: number, depth?: number);
    }

becomes a ``BoxGeometry`` schema with ``type: box`` plus the numeric
properties ``width``, ``height`` and ``depth``.

This is a text-level scanner for declaration files, not a TypeScript parser.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..errors import DuplicateDiscriminatorError, SchemaParseError
from ..gen_logging import get_logger
from ..model import ORIGIN_SYNTHESIZED, SchemaFragment
from .text import find_matching, split_top_level

logger = get_logger(__name__)

DEFAULT_SUFFIXES = ("BufferGeometry", "Geometry")

_CLASS_RE = re.compile(r"\b(?:export\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*)")
_CONSTRUCTOR_RE = re.compile(r"\bconstructor\s*\(")
_JSDOC_RE = re.compile(r"/\*\*(.*?)\*/\s*$", re.S)
_PARAM_TAG_RE = re.compile(r"@param\s+(?:\{[^}]*\}\s+)?\[?([A-Za-z_$][\w$]*)[^\s]*\s*(.*)")
_DEFAULT_RE = re.compile(r"(?:@default\s+|Default\b(?:\s+is)?\s*:?\s*)`?([^`\s,;]+?)`?(?:[.,;]?\s*$|[.,;]?\s)")

_TS_TYPES = {
    "number": "number",
    "bigint": "integer",
    "boolean": "boolean",
    "string": "string",
}


@dataclass
class TypeParameter:
    name: str
    ts_type: str
    optional: bool = False
    default: Any = None
    description: str = ""

    @property
    def schema_type(self) -> str:
        return map_ts_type(self.ts_type)

    def to_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.schema_type}
        if self.default is not None:
            schema["default"] = self.default
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass
class TypeDeclaration:
    name: str
    parameters: List[TypeParameter] = field(default_factory=list)
    source_file: str = ""


def map_ts_type(ts_type: str) -> str:
    """Map a TypeScript type annotation onto a JSON-schema type."""
    options = [t.strip() for t in split_top_level(ts_type, "|")]
    options = [t for t in options if t not in ("null", "undefined")] or ["object"]
    if len(options) > 1:
        mapped = {map_ts_type(t) for t in options}
        return mapped.pop() if len(mapped) == 1 else "object"
    t = options[0]
    if t.endswith("[]") or t.startswith(("Array<", "ReadonlyArray<")):
        return "array"
    if t.startswith(("'", '"')):
        return "string"
    return _TS_TYPES.get(t, "object")


def normalize_discriminator(type_name: str, suffixes: Sequence[str] = DEFAULT_SUFFIXES) -> str:
    """'BoxGeometry' -> 'box'. The longest matching suffix is stripped."""
    for suffix in sorted(suffixes, key=len, reverse=True):
        if suffix and type_name.endswith(suffix) and len(type_name) > len(suffix):
            return type_name[: -len(suffix)].lower()
    return type_name.lower()


def parse_declarations(text: str, filename: str = "") -> List[TypeDeclaration]:
    """Extract every class with a constructor from declaration-file text."""
    declarations = []
    for match in _CLASS_RE.finditer(text):
        body_open = text.find("{", match.end())
        if body_open < 0:
            continue
        body_close = find_matching(text, body_open)
        if body_close < 0:
            logger.warning(f"  [WARN] {filename}: unbalanced body for class {match.group(1)}, skipped")
            continue
        body = text[body_open + 1:body_close]

        ctor = _CONSTRUCTOR_RE.search(body)
        if not ctor:
            continue
        args_open = ctor.end() - 1
        args_close = find_matching(body, args_open, "(", ")")
        if args_close < 0:
            logger.warning(f"  [WARN] {filename}: unbalanced constructor for {match.group(1)}, skipped")
            continue

        docs = _parse_jsdoc(body[:ctor.start()])
        params = []
        for raw in split_top_level(body[args_open + 1:args_close], ","):
            param = _parse_parameter(raw, docs)
            if param is not None:
                params.append(param)
        declarations.append(TypeDeclaration(match.group(1), params, filename))
    return declarations


def _parse_parameter(raw: str, docs: Dict[str, Dict[str, Any]]) -> Optional[TypeParameter]:
    raw = raw.strip()
    if not raw or raw.startswith("..."):
        return None
    name_part, _, type_part = raw.partition(":")
    name_part = name_part.strip()
    type_part, _, inline_default = type_part.partition("=")
    optional = name_part.endswith("?") or bool(inline_default.strip())
    name = name_part.rstrip("?").strip()
    if not re.fullmatch(r"[A-Za-z_$][\w$]*", name):
        return None
    doc = docs.get(name, {})
    default = doc.get("default")
    if inline_default.strip():
        default = parse_literal(inline_default.strip())
    return TypeParameter(
        name=name,
        ts_type=type_part.strip() or "any",
        optional=optional,
        default=default,
        description=doc.get("description", ""),
    )


def _parse_jsdoc(preceding: str) -> Dict[str, Dict[str, Any]]:
    """Collect @param descriptions and defaults from the JSDoc right before the constructor."""
    match = _JSDOC_RE.search(preceding)
    if not match:
        return {}
    docs: Dict[str, Dict[str, Any]] = {}
    current = None
    for line in match.group(1).splitlines():
        line = line.strip().lstrip("*").strip()
        tag = _PARAM_TAG_RE.match(line)
        if tag:
            current = tag.group(1)
            docs[current] = {"description": tag.group(2).strip().lstrip("-\u2013\u2014 ").strip()}
        elif line.startswith("@"):
            current = None
        elif current and line:
            docs[current]["description"] = f"{docs[current]['description']} {line}".strip()
    for entry in docs.values():
        default = _DEFAULT_RE.search(entry["description"] + " ")
        if default:
            entry["default"] = parse_literal(default.group(1))
    return docs


def parse_literal(text: str) -> Any:
    """Best-effort conversion of a source literal into a Python value."""
    text = text.strip().rstrip(",;")
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in ("null", "undefined"):
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        pass
    return text


class TypeDefinitionScanner:
    """
    Synthesize a discriminated-union schema fragment from ``*.d.ts`` files.

    Args:
        fragment_name: Name of the synthesized fragment (namespace for its schemas).
        path: Route of the generated operation.
        method: HTTP method of the generated operation.
        operation_id: operationId of the generated operation.
        suffixes: Type-name suffixes stripped when deriving discriminators.
    """

    def __init__(
        self,
        fragment_name: str = "typedefs",
        path: str = "/geometries",
        method: str = "post",
        operation_id: str = "createGeometry",
        suffixes: Sequence[str] = DEFAULT_SUFFIXES,
        pattern: str = "*.d.ts",
    ):
        self.fragment_name = fragment_name
        self.path = path
        self.method = method.lower()
        self.operation_id = operation_id
        self.suffixes = tuple(suffixes)
        self.pattern = pattern

    def scan(self, directory: Path) -> SchemaFragment:
        directory = Path(directory)
        if not directory.is_dir():
            raise SchemaParseError(str(directory), "type definition directory not found")
        files = sorted(p for p in directory.rglob(self.pattern) if p.is_file())
        logger.info(f"[SYNTH] Scanning {len(files)} type definition file(s) in {directory}")

        declarations: List[TypeDeclaration] = []
        for path in files:
            rel = path.relative_to(directory).as_posix()
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise SchemaParseError(rel, f"cannot read type definitions: {exc}") from exc
            found = parse_declarations(text, rel)
            if not found:
                logger.debug(f"  [SKIP] {path.name}: no constructor declarations")
            declarations.extend(found)

        return self.build_fragment(declarations, str(directory))

    def build_fragment(self, declarations: List[TypeDeclaration], source_path: str = "") -> SchemaFragment:
        """Build the synthesized fragment; raises DuplicateDiscriminatorError on collisions."""
        by_discriminator = defaultdict(list)
        for decl in declarations:
            by_discriminator[normalize_discriminator(decl.name, self.suffixes)].append(decl)

        # The same class declared twice (e.g. re-exported) is one type, not a conflict
        collisions = {}
        for disc, decls in by_discriminator.items():
            names = sorted({d.name for d in decls})
            if len(names) > 1:
                collisions[disc] = [
                    f"{d.name} ({d.source_file})" for d in sorted(decls, key=lambda d: (d.name, d.source_file))
                ]
        if collisions:
            raise DuplicateDiscriminatorError(collisions)

        schemas: Dict[str, Any] = {}
        mapping: Dict[str, str] = {}
        for disc in sorted(by_discriminator):
            decl = by_discriminator[disc][0]
            schemas[decl.name] = self._variant_schema(disc, decl)
            mapping[disc] = f"#/components/schemas/{decl.name}"

        document = {
            "info": {},
            "paths": {},
            "components": {"schemas": schemas},
        }
        if schemas:
            document["paths"][self.path] = {
                self.method: {
                    "operationId": self.operation_id,
                    "summary": f"Create one of: {', '.join(sorted(mapping))}",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "oneOf": [{"$ref": ref} for ref in mapping.values()],
                                    "discriminator": {"propertyName": "type", "mapping": mapping},
                                }
                            }
                        },
                    },
                    "responses": {"200": {"description": "Created"}},
                }
            }

        logger.info(f"[SYNTH] {len(schemas)} payload variant(s) synthesized into '{self.fragment_name}'")
        return SchemaFragment(
            name=self.fragment_name,
            source_path=source_path,
            raw_document=document,
            origin=ORIGIN_SYNTHESIZED,
        )

    @staticmethod
    def _variant_schema(discriminator: str, decl: TypeDeclaration) -> Dict[str, Any]:
        properties: Dict[str, Any] = {"type": {"type": "string", "enum": [discriminator]}}
        required = ["type"]
        for param in decl.parameters:
            if param.name == "type":
                logger.warning(f"  [WARN] {decl.name}: parameter 'type' shadows the discriminator, skipped")
                continue
            properties[param.name] = param.to_schema()
            if not param.optional and param.default is None:
                required.append(param.name)
        return {
            "type": "object",
            "description": f"{decl.name} ({decl.source_file})" if decl.source_file else decl.name,
            "properties": properties,
            "required": required,
        }
