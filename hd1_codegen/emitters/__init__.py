"""Template-based emitters for the router, CLI client and scripting client."""

from .base import Emitter, TemplateCache
from .cli_emitter import CliEmitter
from .router_emitter import RouterEmitter
from .routes import PathParam, Route, build_route_table, check_generated_names
from .scripting_emitter import ScriptingClientEmitter

__all__ = [
    "Emitter",
    "TemplateCache",
    "CliEmitter",
    "RouterEmitter",
    "ScriptingClientEmitter",
    "PathParam",
    "Route",
    "build_route_table",
    "check_generated_names",
]
