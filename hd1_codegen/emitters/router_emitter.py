"""Request-router emitter: a FastAPI APIRouter module, one route per operation."""

import os
from pathlib import Path
from typing import Any, Dict, List

from ..model import ARTIFACT_ROUTER, UnifiedSpecification
from .base import Emitter
from .routes import Route


class RouterEmitter(Emitter):
    kind = ARTIFACT_ROUTER
    template_name = "router.py.jinja"

    def __init__(self, templates, config, handler_root: Path = Path(".")):
        super().__init__(templates, config)
        self.handler_root = Path(handler_root)

    def output_name(self) -> str:
        return self.config.router_file

    def context(self, spec: UnifiedSpecification, routes: List[Route], output_dir: Path) -> Dict[str, Any]:
        ctx = super().context(spec, routes, output_dir)
        # Relative, so the generated module does not embed machine-specific paths
        ctx["handler_root"] = Path(
            os.path.relpath(self.handler_root.resolve(), Path(output_dir).resolve())
        ).as_posix()
        ctx["stubs"] = [r for r in routes if r.stub]
        ctx["handler_files"] = sorted({r.handler_file for r in routes if not r.stub})
        return ctx
