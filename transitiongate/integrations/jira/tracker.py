from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from transitiongate.errors import TransitionApplyError
from transitiongate.integrations.jira.client import JiraClient
from transitiongate.transitions.types import Transition


class JiraTracker:
    """
    Async tracker backed by the blocking Jira REST client.

    Each call runs in a worker thread so issue pipelines overlap on network
    I/O. The client holds no per-call state and can be shared.
    """

    def __init__(self, client: Optional[JiraClient] = None):
        self.client = client or JiraClient()

    async def get_issue(self, key: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.get_issue, key, ["status"])

    async def get_transitions(self, key: str) -> Optional[List[Transition]]:
        rows = await asyncio.to_thread(self.client.get_transitions, key)
        if rows is None:
            return None
        return [Transition.from_jira(row) for row in rows]

    async def apply_transition(self, key: str, transition: Transition) -> None:
        if not transition.id:
            raise TransitionApplyError(f"Transition {transition.name!r} for {key} has no id")
        await asyncio.to_thread(self.client.transition_issue, key, transition.id)
