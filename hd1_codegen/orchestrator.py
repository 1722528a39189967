"""
Build orchestrator: load -> synthesize -> merge -> validate -> emit.

Errors are collected per stage and surfaced as one aggregated report.
Emission only happens when every earlier stage succeeded, so a failed run
never leaves artifacts built from a partial specification.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import BuildConfig
from .emitters import (
    CliEmitter,
    RouterEmitter,
    ScriptingClientEmitter,
    TemplateCache,
    build_route_table,
    check_generated_names,
)
from .emitters.base import TEMPLATES_DIR
from .errors import (
    CodegenError,
    DuplicateOperationIDError,
    MergeError,
    MissingHandlerError,
    PathConflictError,
    SchemaNameCollisionError,
    SchemaParseError,
    TemplateRenderError,
)
from .gen_logging import get_logger
from .loader import LoadResult, load_fragments
from .merger import code_generation_block, merge_fragments
from .model import ComponentCapabilitySpec, GenerationArtifact, SchemaFragment, UnifiedSpecification
from .synthesizers import ComponentCapabilityExtractor, TypeDefinitionScanner
from .validation import ValidationReport, validate_handlers

logger = get_logger(__name__)


@dataclass
class BuildOptions:
    schema_dir: Path
    output_dir: Path = Path("generated")
    handler_root: Path = Path(".")
    typedefs_dir: Optional[Path] = None
    components_dir: Optional[Path] = None
    overrides: Dict[str, Any] = field(default_factory=dict)
    templates_dir: Path = TEMPLATES_DIR
    emit: bool = True


@dataclass
class BuildReport:
    errors: List[CodegenError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    artifacts: List[GenerationArtifact] = field(default_factory=list)
    spec: Optional[UnifiedSpecification] = None
    config: Optional[BuildConfig] = None
    validation: Optional[ValidationReport] = None
    components: List[ComponentCapabilitySpec] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def format(self) -> str:
        """Human-readable aggregated report listing every offending item."""
        if self.ok:
            lines = [f"BUILD SUCCEEDED ({len(self.artifacts)} artifact(s), {len(self.warnings)} warning(s))"]
        else:
            lines = [f"BUILD FAILED ({len(self.errors)} error(s), {len(self.warnings)} warning(s))"]
        if self.errors:
            lines.append("Errors:")
            for err in self.errors:
                lines.append(f"  {type(err).__name__}:")
                lines.extend(f"    {line}" for line in err.lines())
        if self.warnings:
            lines.append("Warnings:")
            lines.extend(f"  {w}" for w in self.warnings)
        if self.notices:
            lines.append("Overrides:")
            lines.extend(f"  {n}" for n in self.notices)
        if self.artifacts:
            lines.append("Artifacts:")
            for artifact in self.artifacts:
                state = "written" if artifact.changed else "unchanged"
                lines.append(f"  {artifact.kind}: {artifact.output_path} ({state})")
        return "\n".join(lines)


class BuildOrchestrator:
    """
    Runs one generation build. Owns the template cache and every artifact
    for the duration of the invocation; nothing is shared between runs.
    """

    def __init__(self, options: BuildOptions, templates: Optional[TemplateCache] = None):
        self.options = options
        self.templates = templates or TemplateCache(options.templates_dir)

    def run(self) -> BuildReport:
        report = BuildReport()

        # STAGE 1: load + synthesize (independent, read-only)
        fragments = self._collect_fragments(report)
        if not fragments:
            report.errors.append(CodegenError("no usable schema fragments; merge, validation and emission skipped"))
            logger.error("[BUILD] No usable schema fragments")
            return report

        # STAGE 2: merge
        config = BuildConfig.resolve(code_generation_block(fragments), self.options.overrides)
        report.config = config
        try:
            spec = merge_fragments(fragments, path_conflicts=config.path_conflicts)
        except MergeError as exc:
            logger.error(f"[MERGE] {exc}")
            report.errors.extend(exc.errors)
            return report
        except (DuplicateOperationIDError, PathConflictError, SchemaNameCollisionError) as exc:
            logger.error(f"[MERGE] {exc}")
            report.errors.append(exc)
            return report
        report.spec = spec
        report.notices.extend(
            f"{c.method} {c.path}: '{c.later_source}' overrides '{c.earlier_source}'" for c in spec.conflicts
        )

        # STAGE 3: validate
        stubs = set()
        if config.handler_validation:
            try:
                report.validation = validate_handlers(spec, config, self.options.handler_root)
                stubs = report.validation.stub_operations
                report.warnings.extend(
                    f"missing handler, stub emitted: {m}" for m in report.validation.missing
                )
                report.warnings.extend(
                    f"handler is not a Python module, stub emitted: {m}" for m in report.validation.foreign
                )
            except MissingHandlerError as exc:
                report.errors.append(exc)
        else:
            logger.info("[VALIDATE] Handler validation disabled")

        # STAGE 4: route table + generated-name collisions
        routes = build_route_table(spec, stubs)
        try:
            check_generated_names(routes)
        except DuplicateOperationIDError as exc:
            logger.error(f"[EMIT] {exc}")
            report.errors.append(exc)

        if report.errors:
            logger.error(f"[BUILD] {len(report.errors)} error(s); emission skipped")
            return report
        if not self.options.emit:
            return report

        # STAGE 5: emit (each artifact independently)
        for emitter in self._emitters(config):
            try:
                report.artifacts.append(emitter.emit(spec, routes, self.options.output_dir))
            except TemplateRenderError as exc:
                logger.error(f"[EMIT] {exc}")
                report.errors.append(exc)

        logger.info(f"[BUILD] {len(report.artifacts)} artifact(s), {len(report.errors)} error(s)")
        return report

    def _collect_fragments(self, report: BuildReport) -> List[SchemaFragment]:
        opts = self.options
        extractor = ComponentCapabilityExtractor()

        with ThreadPoolExecutor(max_workers=3) as pool:
            loaded = pool.submit(load_fragments, opts.schema_dir)
            typedefs = pool.submit(TypeDefinitionScanner().scan, opts.typedefs_dir) if opts.typedefs_dir else None
            components = (
                pool.submit(extractor.extract_directory, opts.components_dir) if opts.components_dir else None
            )

            # Re-assembled in a fixed order whatever finished first
            synthesized: List[SchemaFragment] = []
            if typedefs is not None:
                try:
                    synthesized.append(typedefs.result())
                except (SchemaParseError, DuplicateOperationIDError) as exc:
                    report.errors.append(exc)
            if components is not None:
                report.components = components.result()
                if report.components:
                    synthesized.append(extractor.to_fragment(report.components, str(opts.components_dir)))
                report.errors.extend(extractor.errors)
                report.warnings.extend(str(w) for w in extractor.warnings)
            result: LoadResult = loaded.result()

        report.errors.extend(result.errors)

        # A hand-written fragment must not share a component namespace with a synthesized one
        reserved = {f.name for f in synthesized}
        hand_written = []
        for fragment in result.fragments:
            if fragment.name in reserved:
                err = SchemaParseError(
                    Path(fragment.source_path).name,
                    f"fragment name '{fragment.name}' is reserved for synthesized schemas",
                )
                logger.error(f"  [ERROR] {err}")
                report.errors.append(err)
                continue
            hand_written.append(fragment)
        return synthesized + hand_written

    def _emitters(self, config: BuildConfig):
        if config.auto_routing:
            yield RouterEmitter(self.templates, config, handler_root=self.options.handler_root)
        else:
            logger.info("[EMIT] Auto-routing disabled, router not generated")
        yield CliEmitter(self.templates, config)
        yield ScriptingClientEmitter(self.templates, config)
