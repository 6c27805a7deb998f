"""Diagram engines and the boundary that contains their failures."""

from mermaid_configurable.engine.base import Engine, EngineResult, RenderFailure, RenderSuccess, invoke_engine
from mermaid_configurable.engine.builtin import BuiltinEngine
from mermaid_configurable.engine.mmdc import MermaidCliEngine

ENGINES: dict[str, type] = {
    "builtin": BuiltinEngine,
    "mmdc": MermaidCliEngine,
}

__all__ = [
    "ENGINES",
    "BuiltinEngine",
    "Engine",
    "EngineResult",
    "MermaidCliEngine",
    "RenderFailure",
    "RenderSuccess",
    "invoke_engine",
]
