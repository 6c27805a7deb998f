"""Parser registry — detect the diagram type and dispatch to the right parser."""

from __future__ import annotations

import re

from mermaid_configurable.errors import DiagramSyntaxError
from mermaid_configurable.parsers.base import Parser
from mermaid_configurable.parsers.flowchart import FlowchartParser
from mermaid_configurable.parsers.sequence import SequenceParser
from mermaid_configurable.syntax.types import DiagramType, Graph, SequenceDiagram

_HEADERS: list[tuple[re.Pattern[str], DiagramType]] = [
    (re.compile(r"(graph|flowchart)\b"), DiagramType.Flowchart),
    (re.compile(r"sequenceDiagram\b"), DiagramType.Sequence),
]

_PARSERS: dict[DiagramType, type[Parser]] = {
    DiagramType.Flowchart: FlowchartParser,
    DiagramType.Sequence: SequenceParser,
}


def detect_type(src: str) -> DiagramType:
    """Detect the diagram type from the first statement of ``src``."""
    for line in src.splitlines():
        line = line.strip()
        if not line or line.startswith("%%"):
            continue
        for pattern, diagram_type in _HEADERS:
            if pattern.match(line):
                return diagram_type
        break
    raise DiagramSyntaxError("No diagram type detected matching given configuration")


def parse(src: str) -> Graph | SequenceDiagram:
    """Auto-detect diagram type and parse to AST."""
    return _PARSERS[detect_type(src)]().parse(src)


__all__ = ["FlowchartParser", "SequenceParser", "detect_type", "parse"]
