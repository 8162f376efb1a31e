"""Tests for inference engines.

CommandEngine is exercised against real child processes (small
``python -c`` scripts) so pipe handling, exit codes and the timeout kill are
tested end to end. BaseEngine's shared review() is tested through a stub.
"""

import asyncio
import json
import os
import shutil
import sys
import time
from pathlib import Path

import pytest

from gitgandalf_core.engines.base import BaseEngine
from gitgandalf_core.engines.command import CommandEngine
from gitgandalf_core.engines.ollama import OllamaEngine
from gitgandalf_core.errors import (
    EngineFailureError,
    EngineTimeoutError,
    NoJsonFoundError,
    ToolUnavailableError,
)
from gitgandalf_core.utils.diff import extract_diff_metadata
from gitgandalf_core.verdict import Risk

VALID_JSON = json.dumps({"risk": "MEDIUM", "issues": ["no tests"], "summary": "adds a parser"})


def _python(script: str) -> list[str]:
    return [sys.executable, "-c", script]


def _is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    # an orphan killed with its group may linger as a zombie until init reaps it
    stat = Path(f"/proc/{pid}/stat")
    try:
        return stat.read_text().rsplit(")", 1)[1].split()[0] != "Z"
    except (OSError, IndexError):
        return True


def _gone_within(pid: int, seconds: float = 3.0) -> bool:
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        if not _is_alive(pid):
            return True
        time.sleep(0.05)
    return not _is_alive(pid)


class _StubEngine(BaseEngine):
    def __init__(self, output: str):
        self.output = output
        self.prompts = []

    async def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.output


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class TestBaseEngineReview:
    def test_builds_prompt_and_parses_output(self):
        engine = _StubEngine(f"Review:\n{VALID_JSON}")
        diff = "diff --git a/p.py b/p.py\n+x = 1\n"
        verdict = asyncio.run(engine.review(extract_diff_metadata(diff), diff))
        assert verdict.risk is Risk.MEDIUM
        assert verdict.issues == ("no tests",)
        assert diff in engine.prompts[0]

    def test_unparseable_output_raises(self):
        engine = _StubEngine("looks good")
        with pytest.raises(NoJsonFoundError):
            asyncio.run(engine.review(extract_diff_metadata(""), ""))


# ---------------------------------------------------------------------------
# CommandEngine
# ---------------------------------------------------------------------------


class TestCommandEngine:
    def test_prompt_written_to_stdin(self):
        engine = CommandEngine(_python("import sys; sys.stdout.write(sys.stdin.read().upper())"))
        assert asyncio.run(engine.invoke("hello engine")) == "HELLO ENGINE"

    def test_output_trimmed(self):
        engine = CommandEngine(_python("print('\\n  result  \\n')"))
        assert asyncio.run(engine.invoke("")) == "result"

    def test_non_zero_exit_carries_stderr(self):
        script = "import sys; sys.stderr.write('model not found'); sys.exit(3)"
        engine = CommandEngine(_python(script))
        with pytest.raises(EngineFailureError, match="model not found") as exc_info:
            asyncio.run(engine.invoke("prompt"))
        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "model not found"

    def test_missing_executable_is_tool_unavailable(self):
        engine = CommandEngine(["gitgandalf-no-such-engine-binary", "run"])
        with pytest.raises(ToolUnavailableError) as exc_info:
            asyncio.run(engine.invoke("prompt"))
        assert exc_info.value.executable == "gitgandalf-no-such-engine-binary"

    def test_non_executable_file_is_tool_unavailable(self, tmp_path):
        script = tmp_path / "engine.sh"
        script.write_text("#!/bin/sh\necho hi\n")
        script.chmod(0o644)
        engine = CommandEngine([str(script)])
        with pytest.raises(ToolUnavailableError):
            asyncio.run(engine.invoke("prompt"))

    def test_timeout_kills_process(self):
        engine = CommandEngine(_python("import time; time.sleep(30)"), timeout_seconds=0.5)
        started = time.monotonic()
        with pytest.raises(EngineTimeoutError) as exc_info:
            asyncio.run(engine.invoke("prompt"))
        assert time.monotonic() - started < 10
        assert exc_info.value.timeout_seconds == 0.5

    def test_timeout_leaves_no_live_engine(self, tmp_path):
        pid_file = tmp_path / "engine.pid"
        script = f"import os, time; open({str(pid_file)!r}, 'w').write(str(os.getpid())); time.sleep(30)"
        engine = CommandEngine(_python(script), timeout_seconds=1.0)
        with pytest.raises(EngineTimeoutError):
            asyncio.run(engine.invoke("prompt"))
        assert _gone_within(int(pid_file.read_text()))

    @pytest.mark.skipif(shutil.which("sh") is None or not hasattr(os, "killpg"), reason="needs a POSIX shell")
    def test_timeout_not_held_open_by_grandchild(self):
        """A wrapper whose own child inherits the output pipes must not outlive the deadline."""
        engine = CommandEngine(["sh", "-c", "sleep 8; echo x"], timeout_seconds=0.5)
        started = time.monotonic()
        with pytest.raises(EngineTimeoutError):
            asyncio.run(engine.invoke("prompt"))
        assert time.monotonic() - started < 3

    @pytest.mark.skipif(shutil.which("sh") is None or not hasattr(os, "killpg"), reason="needs a POSIX shell")
    def test_timeout_kills_whole_process_group(self, tmp_path):
        wrapper_pid = tmp_path / "wrapper.pid"
        model_pid = tmp_path / "model.pid"
        script = f"echo $$ > '{wrapper_pid}'; sleep 30 & echo $! > '{model_pid}'; wait"
        engine = CommandEngine(["sh", "-c", script], timeout_seconds=1.0)
        with pytest.raises(EngineTimeoutError):
            asyncio.run(engine.invoke("prompt"))
        assert _gone_within(int(wrapper_pid.read_text()))
        assert _gone_within(int(model_pid.read_text()))

    def test_timeout_discards_partial_output(self):
        script = "import sys, time; print('{\"risk\": \"LOW\"}', flush=True); time.sleep(30)"
        engine = CommandEngine(_python(script), timeout_seconds=0.5)
        with pytest.raises(EngineTimeoutError):
            asyncio.run(engine.invoke("prompt"))

    def test_engine_ignoring_stdin_still_succeeds(self):
        engine = CommandEngine(_python("print('done')"))
        assert asyncio.run(engine.invoke("x" * 200_000)) == "done"

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            CommandEngine([])


class TestOllamaEngine:
    def test_command_line(self):
        engine = OllamaEngine("qwen2.5-coder:7b", timeout_seconds=5)
        assert engine.command == ["ollama", "run", "qwen2.5-coder:7b"]
        assert engine.timeout_seconds == 5

    def test_custom_executable(self):
        engine = OllamaEngine("llama3.1:8b", executable="/opt/ollama/bin/ollama")
        assert engine.command[0] == "/opt/ollama/bin/ollama"

    def test_default_timeout(self):
        assert OllamaEngine("m").timeout_seconds == 60.0
