"""Layout engines for flowcharts and sequence diagrams."""

from mermaid_configurable.layout.layered import LayeredLayout
from mermaid_configurable.layout.sequence import layout_sequence
from mermaid_configurable.layout.types import LayoutConfig, LayoutResult, SequenceLayout

__all__ = ["LayeredLayout", "LayoutConfig", "LayoutResult", "SequenceLayout", "layout_sequence"]
