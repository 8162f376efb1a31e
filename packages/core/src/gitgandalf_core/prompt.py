"""Instruction template sent to the inference engine."""

from __future__ import annotations

from gitgandalf_core.utils.diff import DiffMetadata

PROMPT_TEMPLATE = """You are a strict senior engineer acting as a commit gate.
Assess how risky it is to commit the change below.

Judge correctness bugs, security problems (injection, leaked secrets,
disabled auth or validation), data loss, and removed error handling.
Style and formatting alone never raise the risk.

Risk levels:
- LOW: safe to commit as is.
- MEDIUM: worth a second look before committing.
- HIGH: must not be committed until fixed.

## Change metadata
{metadata}

## Diff
{diff}

### Output Format:
Respond with **only** a single JSON object with exactly these three keys:

{{ "risk": "LOW|MEDIUM|HIGH", "issues": ["..."], "summary": "..." }}

- "risk": one of LOW, MEDIUM, HIGH (uppercase).
- "issues": a list of short strings, one per concrete problem; [] if none.
- "summary": one sentence describing the change.
Do not add any other keys. Do not use markdown. Do not return any text outside the JSON object."""


def build_prompt(metadata: DiffMetadata, diff_text: str) -> str:
    return PROMPT_TEMPLATE.format(metadata=metadata.to_json(), diff=diff_text)
