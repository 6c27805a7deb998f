"""Exception hierarchy for mermaid-configurable."""

from __future__ import annotations


class MermaidError(Exception):
    """Base class for all errors raised by this package."""


class DiagramSyntaxError(MermaidError, ValueError):
    """The diagram source could not be parsed."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.message = message
        self.line = line
        super().__init__(f"line {line}: {message}" if line is not None else message)


class EngineError(MermaidError):
    """The diagram engine failed for a reason unrelated to the source text."""


class EngineUnavailableError(EngineError):
    """The engine's backing executable could not be found."""
