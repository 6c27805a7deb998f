"""mermaid-configurable: Mermaid diagram source to embeddable SVG fragments."""

from mermaid_configurable.config import DEFAULT_CONFIG, PLUGIN_CONFIG_KEY, init_config, merge_config
from mermaid_configurable.engine import BuiltinEngine, MermaidCliEngine
from mermaid_configurable.errors import DiagramSyntaxError, EngineError, MermaidError
from mermaid_configurable.plugin import Block, PluginContext, blocks, hooks
from mermaid_configurable.render import IdAllocator, render, render_fragment

__all__ = [
    "DEFAULT_CONFIG",
    "PLUGIN_CONFIG_KEY",
    "Block",
    "BuiltinEngine",
    "DiagramSyntaxError",
    "EngineError",
    "IdAllocator",
    "MermaidCliEngine",
    "MermaidError",
    "PluginContext",
    "blocks",
    "hooks",
    "init_config",
    "merge_config",
    "render",
    "render_fragment",
]
