"""Error taxonomy for the generate -> compile -> load -> invoke pipeline.

Pipeline-stage errors (fetch, generation, compile, load) abort the run.
Invocation errors are raised at the call site of a single test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .invoker import DomainFailure


class DynaclientError(Exception):
    """Base class for every error raised by dynaclient."""


class FetchError(DynaclientError):
    """The OpenAPI document could not be retrieved or is not valid JSON."""

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"Failed to fetch OpenAPI spec from {reference}: {reason}")


class GenerationError(DynaclientError):
    """The generation engine failed or produced no ``src`` subtree."""


class CompileError(DynaclientError):
    """Batch compilation failed; no artifact in the batch is usable."""

    def __init__(self, message: str, diagnostics: list[str] | None = None) -> None:
        self.diagnostics = diagnostics or []
        if self.diagnostics:
            message = message + "\n" + "\n".join(self.diagnostics)
        super().__init__(message)


class LoadError(DynaclientError):
    """An artifact could not be loaded into the isolated namespace."""


class InvocationPlumbingError(DynaclientError):
    """A requested type, constructor or method does not exist or does not match."""


class SymbolNotFoundError(InvocationPlumbingError, KeyError):
    """Lookup of a name that is not in the symbol table."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No generated symbol named {name!r}")

    def __str__(self) -> str:
        return self.args[0]


class DomainInvocationError(DynaclientError):
    """The invoked generated method itself raised."""

    def __init__(self, failure: DomainFailure) -> None:
        self.failure = failure
        super().__init__(
            f"{type(failure.exception).__name__} (status={failure.status}): {failure.exception}"
        )


class EnvelopeDecodeError(DynaclientError):
    """A domain error body did not parse as a supported error envelope."""

    def __init__(self, reason: str, body: str | None = None) -> None:
        self.body = body
        super().__init__(reason)


class HarnessError(DynaclientError):
    """Session lifecycle misuse (setup or teardown out of order or repeated)."""
