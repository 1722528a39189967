"""
Shared emitter machinery: the template cache and the render/write cycle.
"""

import pprint
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateError

from ..config import BuildConfig
from ..errors import TemplateRenderError
from ..gen_logging import get_logger
from ..model import GenerationArtifact, UnifiedSpecification
from ..utils.files import write_atomic
from .capabilities import build_component_table, components_data
from .routes import Route

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def docline(text: str) -> str:
    """Make text safe inside a one-line triple-quoted Python docstring."""
    text = " ".join(str(text).split()).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    return f"{text} " if text.endswith('"') else text


class TemplateCache:
    """
    Lazily builds one Jinja2 environment and keeps every loaded template.

    Owned by the build orchestrator for the duration of a run; read-only once
    a template has been loaded.
    """

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.templates_dir = Path(templates_dir)
        self._env: Optional[Environment] = None
        self._templates: Dict[str, Template] = {}

    @property
    def env(self) -> Environment:
        if self._env is None:
            env = Environment(
                loader=FileSystemLoader(str(self.templates_dir)),
                autoescape=False,
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=True,
                undefined=StrictUndefined,
            )
            env.filters["pyrepr"] = repr
            env.filters["pyformat"] = pprint.pformat
            env.filters["docline"] = docline
            self._env = env
        return self._env

    def get(self, name: str) -> Template:
        template = self._templates.get(name)
        if template is None:
            template = self.env.get_template(name)
            self._templates[name] = template
            logger.debug(f"  [TEMPLATE] Loaded {name}")
        return template

    def __len__(self) -> int:
        return len(self._templates)


class Emitter:
    """
    Renders one artifact from the unified specification and route table.

    Subclasses set ``kind`` and ``template_name`` and may extend
    ``context()``. Output must be a pure function of the inputs.
    """

    kind = ""
    template_name = ""

    def __init__(self, templates: TemplateCache, config: BuildConfig):
        self.templates = templates
        self.config = config

    def output_name(self) -> str:
        raise NotImplementedError

    def context(self, spec: UnifiedSpecification, routes: List[Route], output_dir: Path) -> Dict[str, Any]:
        components = build_component_table(spec)
        return {
            "components": components,
            "components_data": components_data(components),
            "info": spec.info,
            "title": str(spec.info.get("title") or "HD1 API"),
            "version": str(spec.info.get("version") or ""),
            "sources": list(spec.sources),
            "routes": routes,
            "api_base": self.config.api_base,
        }

    def render(self, spec: UnifiedSpecification, routes: List[Route], output_dir: Path) -> str:
        try:
            template = self.templates.get(self.template_name)
            return template.render(**self.context(spec, routes, output_dir))
        except TemplateError as exc:
            raise TemplateRenderError(self.kind, self.template_name, str(exc)) from exc

    def emit(self, spec: UnifiedSpecification, routes: List[Route], output_dir: Path) -> GenerationArtifact:
        """Render fully, then atomically replace the output file."""
        output_dir = Path(output_dir)
        content = self.render(spec, routes, output_dir)
        target = output_dir / self.output_name()
        changed = write_atomic(target, content)
        status = "[GENERATED]" if changed else "[UNCHANGED]"
        logger.info(f"[EMIT] {status} {self.kind}: {target}")
        return GenerationArtifact(kind=self.kind, output_path=target, changed=changed)
