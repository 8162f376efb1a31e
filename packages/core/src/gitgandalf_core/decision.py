"""Risk → gate action mapping."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from gitgandalf_core.errors import InternalConsistencyError
from gitgandalf_core.verdict import ReviewVerdict, Risk


class Action(str, Enum):
    ALLOW = "ALLOW"
    WARN = "WARN"
    BLOCK = "BLOCK"


_ACTIONS = {
    Risk.LOW: Action.ALLOW,
    Risk.MEDIUM: Action.WARN,
    Risk.HIGH: Action.BLOCK,
}


@dataclass(frozen=True)
class Decision:
    action: Action
    risk: Risk
    summary: str
    issues: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "risk": self.risk.value,
            "summary": self.summary,
            "issues": list(self.issues),
        }


def decide(verdict: ReviewVerdict) -> Decision:
    """Map a validated verdict to its gate action.

    The verdict's summary and issues are carried through untouched.
    """
    action = _ACTIONS.get(verdict.risk)
    if action is None:
        # parse_verdict only ever produces Risk members
        raise InternalConsistencyError(f"No action defined for risk level {verdict.risk!r}.")
    return Decision(action=action, risk=verdict.risk, summary=verdict.summary, issues=verdict.issues)
