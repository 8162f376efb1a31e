"""Core diff-review orchestration.

One diff per run, strictly sequential:
    read_diff → extract_diff_metadata → engine.review (prompt → invoke → validate) → decide
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import IO

from gitgandalf_core.decision import Action, Decision, decide
from gitgandalf_core.engines.base import BaseEngine
from gitgandalf_core.engines.command import CommandEngine
from gitgandalf_core.engines.ollama import OllamaEngine
from gitgandalf_core.ingest import read_diff
from gitgandalf_core.utils.diff import DiffMetadata, extract_diff_metadata

logger = logging.getLogger(__name__)

STATUS_NO_CHANGES = "no_changes"
STATUS_BINARY_ONLY = "binary_only"
STATUS_REVIEWED = "reviewed"


@dataclass
class ReviewOutcome:
    """Terminal result of a run that did not fail.

    Failures are raised as GandalfError subclasses instead, so an outcome is
    always one of the two short-circuits or a completed review.
    """

    status: str  # "no_changes" | "binary_only" | "reviewed"
    metadata: DiffMetadata | None = None
    decision: Decision | None = None

    @property
    def exit_code(self) -> int:
        if self.decision is not None and self.decision.action is Action.BLOCK:
            return 1
        return 0

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "decision": self.decision.to_dict() if self.decision else None,
        }


def _get_engine(config: dict) -> BaseEngine:
    engine = config["engine"]
    timeout = config["timeout_seconds"]
    if engine == "ollama":
        return OllamaEngine(model=config["model"], timeout_seconds=timeout)
    if engine == "command":
        return CommandEngine(config["engine_command"], timeout_seconds=timeout)
    raise ValueError(f"Unknown engine: {engine!r}. Choose 'ollama' or 'command'.")


async def review_diff(diff_text: str, config: dict, engine: BaseEngine | None = None) -> ReviewOutcome:
    """Review already-ingested diff text.

    The engine is only constructed, and the model only launched, once the
    diff is known to contain something reviewable.
    """
    if not diff_text.strip():
        logger.debug("Empty diff; nothing to review")
        return ReviewOutcome(status=STATUS_NO_CHANGES)

    metadata = extract_diff_metadata(diff_text)
    logger.debug(
        "Diff metadata: %d file(s), %d binary, +%d/-%d",
        metadata.files_changed,
        len(metadata.binary_files),
        metadata.lines_added,
        metadata.lines_removed,
    )

    if metadata.is_binary_only:
        logger.debug("Only binary files changed; skipping review")
        return ReviewOutcome(status=STATUS_BINARY_ONLY, metadata=metadata)

    if engine is None:
        engine = _get_engine(config)
    verdict = await engine.review(metadata, diff_text)
    decision = decide(verdict)
    logger.debug("Verdict %s → %s", verdict.risk.value, decision.action.value)
    return ReviewOutcome(status=STATUS_REVIEWED, metadata=metadata, decision=decision)


def run_review(stream: IO, config: dict, engine: BaseEngine | None = None) -> ReviewOutcome:
    """Run the full pipeline on a diff read from *stream*.

    Raises GandalfError subclasses for every failure; never prints or exits.
    """
    diff_text = read_diff(stream, max_bytes=config["max_input_bytes"])
    return asyncio.run(review_diff(diff_text, config, engine=engine))
