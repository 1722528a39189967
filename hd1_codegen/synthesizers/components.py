"""
Component capability extractor.

Scans third-party component-library source text (A-Frame style
``AFRAME.registerComponent('name', { schema: {...}, ... })`` call sites)
and extracts a ComponentCapabilitySpec per registration.

This is a best-effort structural scanner, not a JavaScript parser.
Registrations or property blocks it cannot make sense of are skipped with a
warning; extraction never aborts because of one bad block.
"""

import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import ComponentExtractionError
from ..gen_logging import get_logger
from ..model import ORIGIN_SYNTHESIZED, ComponentCapabilitySpec, PropertySpec, SchemaFragment
from .categories import CategoryClassifier, KeywordCategoryClassifier
from .text import find_matching, split_top_level
from .typedefs import parse_literal

logger = get_logger(__name__)

_REGISTRATION_RE = re.compile(r"registerComponent\s*\(\s*(['\"])([^'\"]+)\1\s*,\s*\{")
_SCHEMA_RE = re.compile(r"(?<![\w$.])schema\s*:\s*\{")
_NUMBER_RE = re.compile(r"[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")

PROPERTY_MARKERS = ("type", "default", "min", "max", "oneOf")
SINGLE_PROPERTY_NAME = "value"
CAPABILITY_SCHEMA = "ComponentCapability"


@dataclass(frozen=True)
class ExtractionWarning:
    filename: str
    component: str
    message: str

    def __str__(self) -> str:
        where = f"{self.filename}: " if self.filename else ""
        what = f"component '{self.component}'" if self.component else "registration"
        return f"{where}{what}: {self.message}"


class ComponentCapabilityExtractor:
    """
    Args:
        classifier: Category strategy; defaults to keyword matching.
        fragment_name: Name (and component namespace) of the synthesized fragment.
        patterns: Glob patterns of source files scanned by ``extract_directory``.
    """

    def __init__(
        self,
        classifier: Optional[CategoryClassifier] = None,
        fragment_name: str = "components",
        patterns: Sequence[str] = ("*.js",),
    ):
        self.classifier = classifier or KeywordCategoryClassifier()
        self.fragment_name = fragment_name
        self.patterns = tuple(patterns)
        self.warnings: List[ExtractionWarning] = []
        self.errors: List[ComponentExtractionError] = []

    # ------------------------------------------------------------------
    # Scanning

    def extract_directory(self, directory: Path) -> List[ComponentCapabilitySpec]:
        directory = Path(directory)
        if not directory.is_dir():
            err = ComponentExtractionError(str(directory), "component source directory not found")
            logger.error(f"  [ERROR] {err}")
            self.errors.append(err)
            return []
        files = sorted({p for pattern in self.patterns for p in directory.rglob(pattern) if p.is_file()})
        logger.info(f"[SYNTH] Scanning {len(files)} component source file(s) in {directory}")

        specs: Dict[str, ComponentCapabilitySpec] = {}
        for path in files:
            rel = path.relative_to(directory).as_posix()
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                err = ComponentExtractionError(rel, f"cannot read file: {exc}")
                logger.error(f"  [ERROR] {err}")
                self.errors.append(err)
                continue
            for spec in self.extract_text(text, rel):
                if spec.name in specs:
                    self._warn(rel, spec.name, f"overrides the registration from {specs[spec.name].source_file}")
                specs[spec.name] = spec

        return [specs[name] for name in sorted(specs)]

    def extract_text(self, text: str, filename: str = "") -> List[ComponentCapabilitySpec]:
        """Extract every recognizable component registration from ``text``."""
        found = []
        for match in _REGISTRATION_RE.finditer(text):
            name = match.group(2)
            body_open = match.end() - 1
            body_close = find_matching(text, body_open)
            if body_close < 0:
                self._warn(filename, name, "unbalanced registration block, skipped")
                continue
            spec = self._parse_registration(name, text[body_open + 1:body_close], filename)
            if spec is not None:
                found.append(spec)
                logger.debug(f"  [OK] {name} ({spec.category}): {len(spec.property_schema)} propert(ies)")
        return found

    def _parse_registration(self, name: str, body: str, filename: str) -> Optional[ComponentCapabilitySpec]:
        schema_match = _SCHEMA_RE.search(body)
        if not schema_match:
            self._warn(filename, name, "no schema block, skipped")
            return None
        schema_open = schema_match.end() - 1
        schema_close = find_matching(body, schema_open)
        if schema_close < 0:
            self._warn(filename, name, "unbalanced schema block, skipped")
            return None

        entries = parse_object_entries(body[schema_open + 1:schema_close])
        if entries is None:
            self._warn(filename, name, "unrecognized schema block, skipped")
            return None

        properties: Dict[str, PropertySpec] = {}
        if entries and set(entries) <= set(PROPERTY_MARKERS) | {"description", "parse", "stringify"}:
            # Single-property schema: schema: {type: 'number', default: 1}
            prop = parse_property(entries)
            if prop is None:
                self._warn(filename, name, "single-property schema has no type or default, skipped")
                return None
            properties[SINGLE_PROPERTY_NAME] = prop
        else:
            for prop_name, raw in entries.items():
                block = parse_object_entries(raw[1:-1]) if raw.startswith("{") and raw.endswith("}") else None
                prop = parse_property(block) if block is not None else None
                if prop is None:
                    self._warn(filename, name, f"property '{prop_name}' not recognized, skipped")
                    continue
                properties[prop_name] = prop

        return ComponentCapabilitySpec(
            name=name,
            category=self.classifier.classify(name),
            property_schema=properties,
            source_file=filename,
        )

    def _warn(self, filename: str, component: str, message: str) -> None:
        warning = ExtractionWarning(filename, component, message)
        logger.warning(f"  [WARN] {warning}")
        self.warnings.append(warning)

    # ------------------------------------------------------------------
    # Output

    def to_fragment(self, specs: Sequence[ComponentCapabilitySpec], source_path: str = "") -> SchemaFragment:
        """
        Fold component specs into a schema-only fragment: one schema per
        component plus a ``ComponentCapability`` oneOf branch. No operations.
        """
        schemas: Dict[str, Any] = {}
        for spec in sorted(specs, key=lambda s: s.name):
            key = spec.schema_name
            if key in schemas or key == CAPABILITY_SCHEMA:
                # light-point and light_point both map to LightPoint
                taken = schemas.get(key, {}).get("x-component", CAPABILITY_SCHEMA)
                key = _unused_key(key, schemas)
                self._warn(spec.source_file, spec.name, f"schema name clashes with '{taken}', stored as '{key}'")
            schemas[key] = spec.to_schema()
        if schemas:
            schemas[CAPABILITY_SCHEMA] = {
                "oneOf": [{"$ref": f"#/components/schemas/{key}"} for key in sorted(schemas)],
            }
        logger.info(f"[SYNTH] {len(specs)} component capabilit(ies) folded into '{self.fragment_name}'")
        return SchemaFragment(
            name=self.fragment_name,
            source_path=source_path,
            raw_document={"paths": {}, "components": {"schemas": schemas}},
            origin=ORIGIN_SYNTHESIZED,
        )


def capabilities_manifest(specs: Sequence[ComponentCapabilitySpec]) -> Dict[str, Any]:
    """Deterministic summary of extracted capabilities, grouped by category."""
    ordered = sorted(specs, key=lambda s: s.name)
    counts = Counter(s.category for s in ordered)
    return {
        "total_components": len(ordered),
        "categories": {category: counts[category] for category in sorted(counts)},
        "components": {
            s.name: {
                "category": s.category,
                "source": s.source_file,
                "schema": s.to_schema()["properties"],
            }
            for s in ordered
        },
    }


# ----------------------------------------------------------------------
# Object-literal helpers

def parse_object_entries(text: str) -> Optional[Dict[str, str]]:
    """
    Split the inside of a JS object literal into {key: raw value text}.
    Returns None when an entry is not of the form ``key: value``.
    """
    entries: Dict[str, str] = {}
    for raw in split_top_level(text, ",", angles=False):
        raw = raw.strip()
        if not raw:
            continue
        key, sep, value = raw.partition(":")
        key = key.strip().strip("'\"")
        if not sep or not re.fullmatch(r"[A-Za-z_$][\w$-]*", key):
            return None
        entries[key] = value.strip()
    return entries


def parse_property(entries: Optional[Dict[str, str]]) -> Optional[PropertySpec]:
    """Build a PropertySpec from recognized markers; None when there are none."""
    if not entries or not any(marker in entries for marker in PROPERTY_MARKERS):
        return None

    default = parse_js_value(entries["default"]) if "default" in entries else None
    prop_type = parse_js_value(entries["type"]) if "type" in entries else None
    if not isinstance(prop_type, str):
        prop_type = infer_type(default)

    enum_values = None
    if "oneOf" in entries:
        parsed = parse_js_value(entries["oneOf"])
        if isinstance(parsed, list):
            enum_values = parsed

    description = parse_js_value(entries.get("description", "''"))
    return PropertySpec(
        type=prop_type,
        default=default,
        min=_number(entries.get("min")),
        max=_number(entries.get("max")),
        enum_values=enum_values,
        description=description if isinstance(description, str) else "",
    )


def parse_js_value(text: str) -> Any:
    """Literal, array or flat object of literals; anything else is kept as raw text."""
    text = text.strip()
    if text.startswith("[") and text.endswith("]"):
        return [parse_js_value(item) for item in split_top_level(text[1:-1], ",", angles=False)]
    if text.startswith("{") and text.endswith("}"):
        entries = parse_object_entries(text[1:-1])
        if entries is not None:
            return {k: parse_js_value(v) for k, v in entries.items()}
        return text
    return parse_literal(text)


def infer_type(default: Any) -> str:
    """A-Frame infers a property's type from its default value."""
    if isinstance(default, bool):
        return "boolean"
    if isinstance(default, (int, float)):
        return "number"
    if isinstance(default, list):
        return "array"
    if isinstance(default, dict) and set(default) <= {"x", "y", "z", "w"} and len(default) >= 2:
        return f"vec{len(default)}"
    return "string"


def _number(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    text = text.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    value = float(text)
    return int(value) if value.is_integer() and "." not in text and "e" not in text.lower() else value


def _unused_key(key: str, schemas: Dict[str, Any]) -> str:
    n = 2
    while f"{key}{n}" in schemas or f"{key}{n}" == CAPABILITY_SCHEMA:
        n += 1
    return f"{key}{n}"
