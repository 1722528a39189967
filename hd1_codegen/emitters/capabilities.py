"""
Component capability table shared by the client emitters.

Built from the ``x-component`` schemas of the unified specification, so the
clients can document every component property and check values against
its default, range and allowed values before anything is sent.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..gen_logging import get_logger
from ..model import UnifiedSpecification

logger = get_logger(__name__)


@dataclass(frozen=True)
class ComponentProperty:
    name: str
    schema: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def doc(self) -> str:
        """'intensity (number, default 1.0, 0..10): Light strength'"""
        schema = self.schema
        details = [str(schema.get("x-property-type") or schema.get("type") or "string")]
        if "default" in schema:
            details.append(f"default {json.dumps(schema['default'])}")
        if "minimum" in schema or "maximum" in schema:
            details.append(f"{schema.get('minimum', '')}..{schema.get('maximum', '')}")
        if schema.get("enum"):
            details.append("one of " + ", ".join(json.dumps(v) for v in schema["enum"]))
        text = f"{self.name} ({', '.join(details)})"
        description = " ".join(str(schema.get("description") or "").split())
        return f"{text}: {description}" if description else text


@dataclass(frozen=True)
class ComponentView:
    name: str
    category: str
    schema_key: str
    properties: Tuple[ComponentProperty, ...] = ()


def build_component_table(spec: UnifiedSpecification) -> List[ComponentView]:
    """Every ``x-component`` schema, sorted by component name."""
    views: Dict[str, ComponentView] = {}
    for key in sorted(spec.components):
        schema = spec.components[key]
        if not isinstance(schema, dict) or not schema.get("x-component"):
            continue
        name = str(schema["x-component"])
        if name in views:
            logger.warning(f"  [WARN] Component '{name}' declared by '{views[name].schema_key}' and '{key}', keeping the first")
            continue
        properties = schema.get("properties") or {}
        views[name] = ComponentView(
            name=name,
            category=str(schema.get("x-category") or ""),
            schema_key=key,
            properties=tuple(ComponentProperty(p, dict(properties[p] or {})) for p in sorted(properties)),
        )
    return [views[name] for name in sorted(views)]


def components_data(views: List[ComponentView]) -> Dict[str, Any]:
    """Plain data embedded in the generated clients."""
    return {
        view.name: {
            "category": view.category,
            "properties": {prop.name: prop.schema for prop in view.properties},
        }
        for view in views
    }
