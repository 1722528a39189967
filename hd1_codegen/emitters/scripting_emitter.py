"""Scripting-client emitter: a JavaScript API wrapper, one method per operation."""

from ..model import ARTIFACT_SCRIPTING
from .base import Emitter


class ScriptingClientEmitter(Emitter):
    kind = ARTIFACT_SCRIPTING
    template_name = "api_client.js.jinja"

    def output_name(self) -> str:
        return self.config.scripting_file
