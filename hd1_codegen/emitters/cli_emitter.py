"""Command-line client emitter: a click application, one subcommand per operation."""

from ..model import ARTIFACT_CLI
from .base import Emitter


class CliEmitter(Emitter):
    kind = ARTIFACT_CLI
    template_name = "cli_client.py.jinja"

    def output_name(self) -> str:
        return self.config.cli_file
