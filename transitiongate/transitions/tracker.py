from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from transitiongate.transitions.types import Transition


class Tracker(Protocol):
    """
    Issue tracker operations the transition pipeline needs.

    Implementations are shared by all concurrently running issue pipelines and
    must be safe to call concurrently.
    """

    async def get_issue(self, key: str) -> Dict[str, Any]:
        """Return the issue JSON; raises ItemNotFoundError for unknown keys."""
        ...

    async def get_transitions(self, key: str) -> Optional[List[Transition]]:
        """Return the legal transitions; None when the tracker sent no list."""
        ...

    async def apply_transition(self, key: str, transition: Transition) -> None:
        """Apply the transition; raises TransitionApplyError on rejection."""
        ...


def status_name(issue: Dict[str, Any]) -> Optional[str]:
    fields = issue.get("fields") or {}
    status = fields.get("status") or {}
    return status.get("name")
