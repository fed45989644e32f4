from __future__ import annotations

from typing import Optional

from transitiongate.transitions.item import TrackedItem
from transitiongate.transitions.types import Transition


def select_transition(item: TrackedItem) -> Optional[Transition]:
    """
    Pick the transition that moves ``item`` to its target state.

    A matched transition is always returned with ``is_global=True`` so that a
    configured target state is attempted even when Jira flags the underlying
    transition as non-global. When a target state is set but no transition
    reaches it, a nameless transition is returned; use ``has_name`` to test
    for a usable selection.
    """
    if item.target_state:
        wanted = item.target_state.lower()
        for transition in item.transitions:
            destination = transition.destination_status_name
            if destination is not None and destination.lower() == wanted:
                return transition.model_copy(update={"is_global": True})
        return Transition(is_global=True)

    if item.status:
        wanted = item.status.lower()
        for transition in item.transitions:
            if transition.name is not None and transition.name.lower() == wanted:
                return transition
    return None


def has_name(transition: Optional[Transition]) -> bool:
    return transition is not None and bool(transition.name)
