"""Tests for the engine boundary and the bundled engines."""

import asyncio
import json
import os
import stat
from pathlib import Path

import pytest

from mermaid_configurable.engine import BuiltinEngine, MermaidCliEngine, RenderFailure, RenderSuccess, invoke_engine
from mermaid_configurable.engine.mmdc import mermaid_settings
from mermaid_configurable.errors import DiagramSyntaxError, EngineError, EngineUnavailableError

CONFIG = {"theme": "default", "securityLevel": "strict", "fontFamily": "Arial, sans-serif"}


def run(coro):
    return asyncio.run(coro)


class TestInvokeEngine:
    def test_success(self):
        result = run(invoke_engine(BuiltinEngine(), "graph TD; A-->B;", CONFIG, "x-svg"))
        assert isinstance(result, RenderSuccess)
        assert result.ok
        assert 'id="x-svg"' in result.svg

    def test_syntax_failure(self):
        result = run(invoke_engine(BuiltinEngine(), "nope", CONFIG, "x-svg"))
        assert isinstance(result, RenderFailure)
        assert not result.ok
        assert isinstance(result.error, DiagramSyntaxError)

    def test_unexpected_exception(self):
        class Broken:
            async def render(self, source, config, element_id):
                raise KeyError("theme")

        result = run(invoke_engine(Broken(), "graph TD; A", CONFIG, "x"))
        assert isinstance(result, RenderFailure)
        assert result.message.startswith("KeyError")


class TestBuiltinEngine:
    def test_theme_applied(self):
        svg = BuiltinEngine().render_sync("graph TD; A-->B;", {**CONFIG, "theme": "dark"}, "e1")
        assert "#1f2020" in svg

    def test_font_size_from_config(self):
        svg = BuiltinEngine().render_sync("graph TD; A;", {**CONFIG, "fontSize": "14px"}, "e1")
        assert "font-size:14px;" in svg

    def test_strict_drops_links(self):
        source = 'graph TD\nA\nclick A "https://example.com"'
        assert "<a " not in BuiltinEngine().render_sync(source, CONFIG, "e1")
        loose = BuiltinEngine().render_sync(source, {**CONFIG, "securityLevel": "loose"}, "e1")
        assert '<a href="https://example.com">' in loose

    def test_sequence(self):
        svg = run(BuiltinEngine().render("sequenceDiagram\nA->>B: hi", CONFIG, "e2"))
        assert svg.startswith("<svg")

    def test_raises_on_bad_source(self):
        with pytest.raises(DiagramSyntaxError):
            BuiltinEngine().render_sync("graph TD\nA -->", CONFIG, "e3")


class TestMermaidSettings:
    def test_font_size_moves_to_theme_variables(self):
        settings = mermaid_settings({**CONFIG, "fontSize": "14px", "startOnLoad": False})
        assert "fontSize" not in settings
        assert settings["themeVariables"] == {"fontSize": "14px"}
        assert settings["startOnLoad"] is False
        assert settings["theme"] == "default"

    def test_without_font_size(self):
        assert mermaid_settings(CONFIG) == CONFIG


class TestMermaidCliEngine:
    def test_missing_executable(self):
        engine = MermaidCliEngine(executable="definitely-not-mmdc-on-this-host")
        assert not engine.available()
        with pytest.raises(EngineUnavailableError):
            run(engine.render("graph TD; A-->B;", CONFIG, "m1"))

    @pytest.fixture
    def fake_mmdc(self, tmp_path):
        """A shell script standing in for mmdc: copies its config next to the output as an SVG."""

        def make(body: str):
            script = tmp_path / "fake-mmdc"
            script.write_text("#!/bin/sh\n" + body)
            script.chmod(script.stat().st_mode | stat.S_IEXEC)
            return str(script)

        return make

    def test_successful_run(self, fake_mmdc):
        executable = fake_mmdc(
            'while [ $# -gt 0 ]; do case "$1" in\n'
            '  --output) out="$2"; shift;;\n'
            '  --configFile) cfg="$2"; shift;;\n'
            '  --svgId) id="$2"; shift;;\n'
            "esac; shift; done\n"
            'printf \'<svg id="%s">\' "$id" > "$out"\n'
            'cat "$cfg" >> "$out"\n'
            "printf '</svg>' >> \"$out\"\n"
        )
        svg = run(MermaidCliEngine(executable=executable).render("graph TD; A-->B;", {**CONFIG, "theme": "dark"}, "m2"))
        assert svg.startswith('<svg id="m2">')
        body = svg[len('<svg id="m2">') : -len("</svg>")]
        assert json.loads(body)["theme"] == "dark"

    def test_parse_error_is_syntax_error(self, fake_mmdc):
        executable = fake_mmdc("echo 'Error: Parse error on line 1:' >&2\nexit 1\n")
        with pytest.raises(DiagramSyntaxError, match="Parse error"):
            run(MermaidCliEngine(executable=executable).render("graph TD; A-->", CONFIG, "m3"))

    def test_other_failure_is_engine_error(self, fake_mmdc):
        executable = fake_mmdc("echo 'Error: Failed to launch the browser process' >&2\nexit 2\n")
        with pytest.raises(EngineError, match="status 2"):
            run(MermaidCliEngine(executable=executable).render("graph TD; A-->B", CONFIG, "m4"))

    def test_timeout(self, fake_mmdc):
        executable = fake_mmdc("sleep 5\n")
        with pytest.raises(EngineError, match="timed out"):
            run(MermaidCliEngine(executable=executable, timeout=0.2).render("graph TD; A-->B", CONFIG, "m5"))

    def test_cancellation_kills_child(self, fake_mmdc, tmp_path):
        pid_file = tmp_path / "mmdc.pid"
        executable = fake_mmdc(f'echo $$ > "{pid_file}"\nexec sleep 30\n')

        async def cancel_mid_render():
            task = asyncio.create_task(MermaidCliEngine(executable=executable).render("graph TD; A-->B", CONFIG, "m6"))
            for _ in range(200):
                if pid_file.exists() and pid_file.read_text().strip():
                    break
                await asyncio.sleep(0.02)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        run(cancel_mid_render())
        pid = int(pid_file.read_text())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    def test_workdir_removed(self, fake_mmdc, tmp_path):
        seen = tmp_path / "workdir.txt"
        executable = fake_mmdc(
            'while [ $# -gt 0 ]; do case "$1" in\n'
            '  --output) out="$2"; shift;;\n'
            "esac; shift; done\n"
            f'dirname "$out" > "{seen}"\n'
            'printf "<svg></svg>" > "$out"\n'
        )
        assert run(MermaidCliEngine(executable=executable).render("graph TD; A-->B", CONFIG, "m7")) == "<svg></svg>"
        assert not Path(seen.read_text().strip()).exists()
