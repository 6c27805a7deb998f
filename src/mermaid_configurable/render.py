"""Render pipeline: diagram source + configuration -> embeddable HTML fragment.

``render`` never raises for bad diagrams or failing engines: one broken
diagram degrades to an inline error fragment instead of aborting the
surrounding document.
"""

from __future__ import annotations

import html
import itertools
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mermaid_configurable.config import DEFAULT_CONFIG, as_overrides, merge_config
from mermaid_configurable.engine import BuiltinEngine, Engine, RenderSuccess, invoke_engine

logger = logging.getLogger(__name__)

DIAGRAM_CLASS = "mermaid-diagram"
ERROR_CLASS = "mermaid-error"


class IdAllocator:
    """Hands out DOM ids that are unique within the process.

    The counter is advanced synchronously, so interleaved coroutines can
    never observe the same value. ``namespace`` defaults to a random token,
    which keeps ids from separate processes apart as well.
    """

    def __init__(self, prefix: str = "mermaid", namespace: str | None = None) -> None:
        self.prefix = prefix
        self.namespace = namespace if namespace is not None else uuid.uuid4().hex[:8]
        self._counter = itertools.count(1)

    def next_id(self) -> str:
        return f"{self.prefix}-{self.namespace}-{next(self._counter)}"


class FragmentKind(Enum):
    Diagram = "diagram"
    Error = "error"


@dataclass(frozen=True)
class Fragment:
    kind: FragmentKind
    html: str
    element_id: str
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is FragmentKind.Diagram

    def __str__(self) -> str:
        return self.html


def wrap_svg(svg: str, element_id: str) -> str:
    return f'<div class="{DIAGRAM_CLASS}" id="{html.escape(element_id)}">{svg}</div>'


def error_fragment(message: str, element_id: str) -> str:
    return (
        f'<div class="{ERROR_CLASS}" id="{html.escape(element_id)}">'
        f"Syntax error in diagram: {html.escape(message)}</div>"
    )


_default_engine = BuiltinEngine()
_default_ids = IdAllocator()


def is_empty_source(diagram_source: object) -> bool:
    return diagram_source is None or (isinstance(diagram_source, str) and not diagram_source.strip())


async def render_fragment(
    diagram_source: str | None = None,
    config: Mapping[str, Any] | None = None,
    *,
    engine: Engine | None = None,
    ids: IdAllocator | None = None,
) -> Fragment | None:
    """Render ``diagram_source`` into a Fragment, or None for empty input."""
    if is_empty_source(diagram_source):
        return None

    # Allocate before the first await so concurrent calls never share an id.
    element_id = (ids or _default_ids).next_id()
    effective = merge_config(DEFAULT_CONFIG, as_overrides(config, "render config"))
    result = await invoke_engine(engine or _default_engine, str(diagram_source), effective, f"{element_id}-svg")

    if isinstance(result, RenderSuccess):
        return Fragment(FragmentKind.Diagram, wrap_svg(result.svg, element_id), element_id)

    logger.warning("diagram %s failed to render: %s", element_id, result.message)
    return Fragment(FragmentKind.Error, error_fragment(result.message, element_id), element_id, result.message)


async def render(
    diagram_source: str | None = None,
    config: Mapping[str, Any] | None = None,
    *,
    engine: Engine | None = None,
    ids: IdAllocator | None = None,
) -> str:
    """Render ``diagram_source`` with ``config`` into an HTML fragment string.

    Returns ``""`` for empty input, a ``mermaid-diagram`` fragment on success
    and a ``mermaid-error`` fragment when the diagram cannot be rendered.
    """
    fragment = await render_fragment(diagram_source, config, engine=engine, ids=ids)
    return "" if fragment is None else fragment.html
