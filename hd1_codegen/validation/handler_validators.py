"""
Handler binding validation.

Every operation that declares an ``x-handler`` file must point at a file
that exists under the handler root. All violations are collected; whether
they fail the build or degrade to stub emission is decided by configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Set

from ..config import BuildConfig
from ..errors import MissingHandlerError
from ..gen_logging import get_logger
from ..model import UnifiedSpecification

logger = get_logger(__name__)


@dataclass(frozen=True)
class MissingHandler:
    method: str
    path: str
    implementation_file: str
    operation_id: str = ""

    def __str__(self) -> str:
        return f"{self.method} {self.path} -> {self.implementation_file}"


@dataclass
class ValidationReport:
    checked: int = 0
    missing: List[MissingHandler] = field(default_factory=list)
    # present on disk but not importable by the generated router
    foreign: List[MissingHandler] = field(default_factory=list)
    stub_operations: Set[str] = field(default_factory=set)

    @property
    def ok(self) -> bool:
        return not self.missing


def find_missing_handlers(spec: UnifiedSpecification, handler_root: Path) -> ValidationReport:
    """Check every bound operation against the filesystem; never short-circuits."""
    handler_root = Path(handler_root)
    report = ValidationReport()
    for op in spec.operations():
        binding = op.handler_binding
        if binding is None or not binding.implementation_file_path:
            continue
        report.checked += 1
        entry = MissingHandler(op.method, op.path, binding.implementation_file_path, op.operation_id)
        if not (handler_root / binding.implementation_file_path).is_file():
            report.missing.append(entry)
        elif not binding.is_python_module:
            report.foreign.append(entry)
    return report


def validate_handlers(
    spec: UnifiedSpecification,
    config: BuildConfig,
    handler_root: Path,
) -> ValidationReport:
    """
    Validate handler bindings.

    Raises:
        MissingHandlerError: listing every missing handler, when
            fail-on-missing-handlers (or strict-validation) is enabled.

    Otherwise each missing handler is logged as a warning and its operation
    is marked for stub emission in ``report.stub_operations``.
    Handlers that exist but are not ``.py`` modules always get a stub (with a
    warning): the generated router can only import Python.
    """
    logger.info(f"[VALIDATE] Checking handler bindings under {handler_root}")
    report = find_missing_handlers(spec, handler_root)

    if report.missing and config.missing_handlers_fatal:
        for missing in report.missing:
            logger.error(f"  [ERROR] Missing handler: {missing}")
        raise MissingHandlerError(report.missing)

    for missing in report.missing:
        logger.warning(f"  [WARN] Missing handler, emitting stub: {missing}")
        report.stub_operations.add(missing.operation_id)

    for foreign in report.foreign:
        logger.warning(f"  [WARN] Handler is not a Python module, emitting stub: {foreign}")
        report.stub_operations.add(foreign.operation_id)

    logger.info(
        f"[VALIDATE] {report.checked} binding(s) checked, {len(report.missing)} missing"
    )
    return report
