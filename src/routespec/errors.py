"""routespec exception hierarchy.

Every failure aborts the whole generation; nothing here is meant to be
caught and skipped inside the pipeline.
"""

from __future__ import annotations


class RouteSpecError(Exception):
    """Base for all routespec errors."""


class GrammarError(RouteSpecError):
    """Malformed declaration text.

    Carries the position of the offending token so the message can point at it.
    """

    def __init__(self, message: str, source: str, line: int, column: int, offset: int) -> None:
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        self.offset = offset
        super().__init__(self._render())

    def _render(self) -> str:
        head = f"{self.message} at line {self.line}, column {self.column}"
        lines = self.source.splitlines()
        if not (1 <= self.line <= len(lines)):
            return head
        text = lines[self.line - 1]
        caret = " " * (self.column - 1) + "^"
        return f"{head}\n  {text}\n  {caret}"


class ResolutionError(RouteSpecError):
    """A route or mutator reference does not name a reachable object."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot resolve `{path}`: {reason}")


class RegistrationError(RouteSpecError):
    """Companion registration (or binding) failed for a declared route."""

    def __init__(self, route: str, cause: BaseException) -> None:
        self.route = route
        self.cause = cause
        super().__init__(f"Could not generate OpenAPI operation for `{route}`: {cause}")


class ConfigurationError(RouteSpecError):
    """Required package metadata is missing."""


class MutatorError(RouteSpecError):
    """The spec mutator raised while editing the assembled document."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Spec mutator `{path}` failed: {cause}")


class GeneratorConsumedError(RouteSpecError):
    """An OpenApiGenerator was used after finalize()."""
