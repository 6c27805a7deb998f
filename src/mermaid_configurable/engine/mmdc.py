"""Mermaid CLI engine: renders through the ``mmdc`` executable."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mermaid_configurable.config import font_size_px
from mermaid_configurable.errors import DiagramSyntaxError, EngineError, EngineUnavailableError

logger = logging.getLogger(__name__)

_PARSE_ERROR_MARKERS = ("parse error", "syntax error", "lexical error", "no diagram type detected")


def mermaid_settings(config: Mapping[str, Any]) -> dict[str, Any]:
    """Translate an effective configuration into a mermaid JSON config file body."""
    settings = {key: value for key, value in config.items() if key != "fontSize"}
    if config.get("fontSize") is not None:
        theme_variables = dict(settings.get("themeVariables") or {})
        theme_variables["fontSize"] = f"{font_size_px(config):g}px"
        settings["themeVariables"] = theme_variables
    return settings


class MermaidCliEngine:
    """Runs ``mmdc`` in a temporary directory for each diagram."""

    def __init__(self, executable: str = "mmdc", timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    async def render(self, source: str, config: Mapping[str, Any], element_id: str) -> str:
        executable = shutil.which(self.executable)
        if executable is None:
            raise EngineUnavailableError(f"'{self.executable}' not found on PATH")

        workdir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix="mermaid-"))
        try:
            input_file = workdir / "input.mmd"
            output_file = workdir / "output.svg"
            config_file = workdir / "config.json"
            await asyncio.to_thread(
                _write_inputs, input_file, source, config_file, json.dumps(mermaid_settings(config))
            )

            args = [
                executable,
                "--input", str(input_file),
                "--output", str(output_file),
                "--configFile", str(config_file),
                "--svgId", element_id,
                "--backgroundColor", "transparent",
                "--quiet",
            ]
            logger.debug("running %s", " ".join(args))
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise EngineError(f"'{self.executable}' timed out after {self.timeout}s") from None
            finally:
                # Timeouts and cancellation both leave the child running.
                if proc.returncode is None:
                    with contextlib.suppress(ProcessLookupError):
                        proc.kill()
                    await proc.wait()

            if proc.returncode != 0:
                detail = _first_error_line(stderr.decode("utf-8", errors="replace"))
                if any(marker in detail.lower() for marker in _PARSE_ERROR_MARKERS):
                    raise DiagramSyntaxError(detail)
                raise EngineError(f"'{self.executable}' exited with status {proc.returncode}: {detail}")

            return await asyncio.to_thread(output_file.read_text, encoding="utf-8")
        finally:
            await asyncio.to_thread(shutil.rmtree, workdir, ignore_errors=True)


def _write_inputs(input_file: Path, source: str, config_file: Path, settings: str) -> None:
    input_file.write_text(source, encoding="utf-8")
    config_file.write_text(settings, encoding="utf-8")


def _first_error_line(stderr: str) -> str:
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    for line in lines:
        if "error" in line.lower():
            return line
    return lines[0] if lines else "no output"
