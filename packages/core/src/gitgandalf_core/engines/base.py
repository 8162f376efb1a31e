"""Base engine implementing the Template Method pattern.

All engines share the same review algorithm:
    review() → build_prompt() → invoke() → parse_verdict()
                                 ↑ only this differs per engine

Subclasses implement ``invoke`` only: run one inference for a prompt and
return the engine's raw text output, raising an InvocationError on failure.
Prompt construction and schema validation live outside the engines so every
engine is held to the same output contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from gitgandalf_core.prompt import build_prompt
from gitgandalf_core.utils.diff import DiffMetadata
from gitgandalf_core.verdict import ReviewVerdict, parse_verdict


class BaseEngine(ABC):
    async def review(self, metadata: DiffMetadata, diff_text: str) -> ReviewVerdict:
        """Assess one diff and return the validated verdict.

        There is no retry: a failed invocation or a malformed response ends
        the run.
        """
        prompt = build_prompt(metadata, diff_text)
        raw = await self.invoke(prompt)
        return parse_verdict(raw)

    @abstractmethod
    async def invoke(self, prompt: str) -> str:
        """Run a single inference and return the raw, trimmed output text."""
