"""Tests for plugin.py — init hook and mermaid block processing."""

import asyncio

from mermaid_configurable.config import PLUGIN_CONFIG_KEY
from mermaid_configurable.plugin import Block, PluginContext, blocks, hooks, init, process_block
from mermaid_configurable.render import IdAllocator


class Store:
    def __init__(self, value=None):
        self.value = value

    def get(self, key):
        return self.value if key == PLUGIN_CONFIG_KEY else None


class Log:
    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(message)


class RecordingEngine:
    def __init__(self):
        self.configs = []

    async def render(self, source, config, element_id):
        self.configs.append(dict(config))
        return f'<svg id="{element_id}"></svg>'


def test_hook_registration_shape():
    assert hooks["init"] is init
    assert blocks["mermaid"]["process"] is process_block


def test_init_sets_default_config():
    context = PluginContext(config=Store(None), log=Log())
    hooks["init"](context)
    assert context.mermaid_config is not None
    assert context.mermaid_config["theme"] == "default"
    assert context.mermaid_config["securityLevel"] == "strict"
    assert context.mermaid_config["fontFamily"] == "Arial, sans-serif"
    assert len(context.log.messages) == 1


def test_init_uses_custom_config():
    custom = {
        "theme": "dark",
        "securityLevel": "loose",
        "fontFamily": "Courier",
        "fontSize": "14px",
        "startOnLoad": True,
    }
    context = PluginContext(config=Store(custom), log=Log())
    init(context)
    assert context.mermaid_config["theme"] == "dark"
    assert context.mermaid_config["securityLevel"] == "loose"
    assert context.mermaid_config["fontFamily"] == "Courier"
    assert context.mermaid_config["fontSize"] == "14px"
    assert context.mermaid_config["startOnLoad"] is True


def test_block_process_merges_configs():
    engine = RecordingEngine()
    context = PluginContext(mermaid_config={"theme": "default", "securityLevel": "strict"}, engine=engine)
    block = Block(body="graph TD; A-->B;", kwargs={"theme": "dark"})

    result = asyncio.run(blocks["mermaid"]["process"](context, block))

    assert "svg" in result
    (config,) = engine.configs
    assert config["theme"] == "dark"
    assert config["securityLevel"] == "strict"


def test_block_overrides_do_not_leak():
    engine = RecordingEngine()
    context = PluginContext(mermaid_config={"theme": "default", "securityLevel": "strict"}, engine=engine)

    asyncio.run(process_block(context, Block(body="graph TD; A-->B;", kwargs={"theme": "dark"})))
    asyncio.run(process_block(context, Block(body="graph TD; A-->B;")))

    assert context.mermaid_config == {"theme": "default", "securityLevel": "strict"}
    assert [c["theme"] for c in engine.configs] == ["dark", "default"]


def test_block_process_with_builtin_engine():
    context = PluginContext(mermaid_config={"theme": "default", "securityLevel": "strict"})
    result = asyncio.run(process_block(context, Block(body="graph TD; A-->B;", kwargs={"theme": "dark"})))
    assert "<svg" in result
    assert "mermaid-diagram" in result


def test_block_process_handles_empty_body():
    context = PluginContext(mermaid_config={"theme": "default"})
    assert asyncio.run(process_block(context, Block(body="", kwargs={}))) == ""
    assert asyncio.run(process_block(context, Block(body=None, kwargs={"theme": "dark"}))) == ""


def test_block_process_before_init_uses_defaults():
    engine = RecordingEngine()
    context = PluginContext(engine=engine)
    asyncio.run(process_block(context, Block(body="graph LR; A-->B;")))
    assert engine.configs[0]["theme"] == "default"


def test_context_id_allocator_is_used():
    context = PluginContext(engine=RecordingEngine(), ids=IdAllocator(namespace="doc"))
    result = asyncio.run(process_block(context, Block(body="graph TD; A-->B;")))
    assert 'id="mermaid-doc-1"' in result


def test_block_with_non_mapping_kwargs_uses_session_config():
    engine = RecordingEngine()
    context = PluginContext(mermaid_config={"theme": "forest", "securityLevel": "strict"}, engine=engine)
    result = asyncio.run(process_block(context, Block(body="graph TD; A-->B;", kwargs=["theme", "dark"])))
    assert "svg" in result
    assert engine.configs == [{"theme": "forest", "securityLevel": "strict"}]
