"""Base parser protocol."""

from __future__ import annotations

from typing import Protocol

from mermaid_configurable.syntax.types import Graph, SequenceDiagram


class Parser(Protocol):
    """Protocol that all diagram parsers must implement."""

    def parse(self, src: str) -> Graph | SequenceDiagram:
        """Parse source text into an AST, raising DiagramSyntaxError on bad input."""
        ...
