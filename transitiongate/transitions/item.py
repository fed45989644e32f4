from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from transitiongate.config import ISSUE_KEY_PATTERN
from transitiongate.errors import NoTransitionsError
from transitiongate.rules.config import TransitionConfig
from transitiongate.rules.resolver import resolve_target_state
from transitiongate.transitions.tracker import Tracker, status_name
from transitiongate.transitions.types import Outcome, Transition

logger = logging.getLogger(__name__)

_ISSUE_KEY_RE = re.compile(ISSUE_KEY_PATTERN, re.IGNORECASE)


def parse_project_key(item_key: str) -> str:
    match = _ISSUE_KEY_RE.match(item_key)
    if not match:
        return ""
    return match.group("project").upper()


@dataclass
class TrackedItem:
    key: str
    project_key: str
    status_before: Optional[str] = None
    # Only set once the status is refreshed after a transition.
    status: Optional[str] = None
    target_state: str = ""
    transitions: List[Transition] = field(default_factory=list)
    transition_log: List[str] = field(default_factory=list)

    @property
    def transition_names(self) -> List[str]:
        return [t.name for t in self.transitions if t.name]

    @property
    def transition_ids(self) -> List[str]:
        return [t.id for t in self.transitions if t.id]

    @classmethod
    async def build(
        cls,
        key: str,
        tracker: Tracker,
        config: TransitionConfig,
        event: Mapping[str, Any],
        *,
        fail_on_error: bool = False,
        log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ) -> "TrackedItem":
        """
        Fetch the issue and its legal transitions and resolve the target state.

        The target state is resolved once here, before any transition is
        attempted. ItemNotFoundError from the tracker propagates.
        """
        log = log or logger
        item = cls(key=key, project_key=parse_project_key(key))

        issue = await tracker.get_issue(key)
        item.status_before = status_name(issue)
        item.target_state = resolve_target_state(config, item.project_key, event, log=log)

        transitions = await tracker.get_transitions(key)
        if transitions is None:
            log.warning("No transitions found for issue %s", key)
            if fail_on_error:
                raise NoTransitionsError(f"Issue {key} has no available transitions")
            transitions = []
        item.transitions = list(transitions)
        item.transition_log = [t.describe() for t in item.transitions]
        return item

    async def refresh_status(self, tracker: Tracker) -> Optional[str]:
        issue = await tracker.get_issue(self.key)
        self.status = status_name(issue)
        return self.status

    def to_outcome(self) -> Outcome:
        return Outcome(
            item_key=self.key,
            available_transition_names=self.transition_names,
            available_transition_ids=self.transition_ids,
            status_before=self.status_before,
            status_after=self.status if self.status is not None else self.status_before,
        )
