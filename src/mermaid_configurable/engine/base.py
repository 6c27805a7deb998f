"""Engine protocol and the result type returned at the engine boundary."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from mermaid_configurable.errors import DiagramSyntaxError


class Engine(Protocol):
    """A diagram engine turning source text into SVG markup.

    Implementations raise ``DiagramSyntaxError`` for invalid source and may
    raise anything else for internal failures.
    """

    async def render(self, source: str, config: Mapping[str, Any], element_id: str) -> str: ...


@dataclass(frozen=True)
class RenderSuccess:
    svg: str

    ok = True


@dataclass(frozen=True)
class RenderFailure:
    message: str
    error: BaseException | None = None

    ok = False


EngineResult = RenderSuccess | RenderFailure


async def invoke_engine(
    engine: Engine, source: str, config: Mapping[str, Any], element_id: str
) -> EngineResult:
    """Run ``engine`` and fold every failure into a ``RenderFailure``."""
    try:
        svg = await engine.render(source, config, element_id)
    except DiagramSyntaxError as exc:
        return RenderFailure(str(exc), exc)
    except Exception as exc:
        return RenderFailure(f"{type(exc).__name__}: {exc}", exc)
    if not isinstance(svg, str) or "<svg" not in svg:
        return RenderFailure("engine returned no SVG markup")
    return RenderSuccess(svg)
