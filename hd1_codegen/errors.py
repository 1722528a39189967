"""
Error taxonomy for the code generation pipeline.

Every error carries the structured data it reports on and renders a message
that lists *all* offending items, so a single failed build tells the user
everything that needs fixing.
"""


class CodegenError(Exception):
    """Base class for all generator errors."""

    fatal = True

    def lines(self) -> list[str]:
        """Report lines for the aggregated build report."""
        return [str(self)]


class SchemaParseError(CodegenError):
    """One schema fragment could not be read or parsed."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")


class DuplicateOperationIDError(CodegenError):
    """
    Two or more operations share an identifier.

    ``duplicates`` maps each offending identifier to every operation
    description (``METHOD /path (source)``) that uses it.
    """

    kind = "operationId"

    def __init__(self, duplicates: dict[str, list[str]]):
        self.duplicates = duplicates
        super().__init__(self._render())

    def _render(self) -> str:
        parts = []
        for ident in sorted(self.duplicates):
            owners = ", ".join(self.duplicates[ident])
            parts.append(f"duplicate {self.kind} '{ident}': {owners}")
        return "; ".join(parts)

    def lines(self) -> list[str]:
        return [
            f"duplicate {self.kind} '{ident}': {', '.join(self.duplicates[ident])}"
            for ident in sorted(self.duplicates)
        ]


class DuplicateDiscriminatorError(DuplicateOperationIDError):
    """Two foreign types normalize to the same payload discriminator."""

    kind = "discriminator"


class PathConflictError(CodegenError):
    """
    Same path and method declared by more than one fragment.

    Informational under the default override policy; raised only when
    path conflicts are configured as errors.
    """

    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        super().__init__("; ".join(self.lines()))

    def lines(self) -> list[str]:
        return [
            f"{c.method} {c.path} declared by '{c.earlier_source}' and '{c.later_source}'"
            for c in self.conflicts
        ]


class MissingHandlerError(CodegenError):
    """Handler implementation files referenced by operations do not exist."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            f"{len(self.missing)} missing handler(s):\n" + "\n".join(self.lines())
        )

    def lines(self) -> list[str]:
        return [str(m) for m in self.missing]


class TemplateRenderError(CodegenError):
    """Rendering one artifact failed; other artifacts are still attempted."""

    def __init__(self, kind: str, template: str, reason: str):
        self.kind = kind
        self.template = template
        self.reason = reason
        super().__init__(f"{kind}: failed to render '{template}': {reason}")


class ComponentExtractionError(CodegenError):
    """A component-library source could not be read at all."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")


class SchemaNameCollisionError(CodegenError):
    """
    Two fragments produced the same namespaced component key
    (e.g. fragment ``a_b`` + schema ``C`` and fragment ``a`` + schema ``b_C``).
    """

    def __init__(self, collisions):
        # (key, earlier fragment, later fragment)
        self.collisions = list(collisions)
        super().__init__("; ".join(self.lines()))

    def lines(self) -> list[str]:
        return [f"component '{key}' produced by '{a}' and '{b}'" for key, a, b in self.collisions]


class MergeError(CodegenError):
    """Several fatal merge conditions found in one pass; each is kept intact."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))

    def lines(self) -> list[str]:
        return [line for err in self.errors for line in err.lines()]
