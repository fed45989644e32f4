import asyncio
from textwrap import dedent
from typing import Dict, List, Optional

import pytest

from transitiongate.errors import ItemNotFoundError, TransitionApplyError
from transitiongate.observability.internal_metrics import reset as reset_metrics
from transitiongate.rules.config import load_transition_config
from transitiongate.transitions.types import Transition


TRANSITIONS_YAML = dedent(
    """
    projects:
      UNICORN:
        ignored_states:
          - 'done'
          - 'testing'
        to_state:
          'solution review':
            - eventName: create
          'code review':
            - eventName: pull_request
              action: 'opened'
            - eventName: pull_request
              action: 'synchronized'
          'testing':
            - eventName: pull_request
              payload:
                merged: true
              action: 'closed'
            - eventName: pull_request_review
              payload:
                state: 'APPROVED'
      DVPS:
        ignored_states:
          - 'done'
          - 'testing'
        to_state:
          'On Hold':
            - eventName: start_test
          'In Progress':
            - eventName: create
          'Code Review':
            - eventName: pull_request
              action: 'opened'
            - eventName: pull_request
              action: 'synchronized'
          'testing':
            - eventName: pull_request
              payload:
                merged: true
              action: 'closed'
            - eventName: pull_request_review
              payload:
                state: 'APPROVED'
    """
)


def default_transitions() -> List[Transition]:
    return [
        Transition(id="11", name="In Progress", destination_status_name="In Progress", is_global=True),
        Transition(id="21", name="Code Review", destination_status_name="Code Review", is_global=True),
        Transition(id="31", name="On Hold", destination_status_name="On Hold", is_global=True),
        Transition(id="41", name="Testing", destination_status_name="testing", is_global=True),
        Transition(id="51", name="Done", destination_status_name="done", is_global=True),
    ]


class FakeTracker:
    """In-memory tracker with the same async contract as JiraTracker."""

    def __init__(
        self,
        statuses: Dict[str, str],
        transitions: Optional[Dict[str, Optional[List[Transition]]]] = None,
        *,
        reject: Optional[set] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.statuses = dict(statuses)
        self.transitions = transitions or {}
        self.reject = set(reject or ())
        self.delays = delays or {}
        self.calls: List[tuple] = []
        self.applied: List[tuple] = []

    async def get_issue(self, key):
        self.calls.append(("get_issue", key))
        await asyncio.sleep(self.delays.get(key, 0))
        if key not in self.statuses:
            raise ItemNotFoundError(f"Issue not found: {key}")
        return {"key": key, "fields": {"status": {"name": self.statuses[key]}}}

    async def get_transitions(self, key):
        self.calls.append(("get_transitions", key))
        if key in self.transitions:
            return self.transitions[key]
        return default_transitions()

    async def apply_transition(self, key, transition):
        self.calls.append(("apply_transition", key))
        if key in self.reject:
            raise TransitionApplyError(f"Jira rejected transition {transition.id} for {key}")
        self.applied.append((key, transition))
        self.statuses[key] = transition.destination_status_name


@pytest.fixture
def transitions_yaml():
    return TRANSITIONS_YAML


@pytest.fixture
def transition_config():
    return load_transition_config(TRANSITIONS_YAML)


@pytest.fixture
def tracker_factory():
    return FakeTracker


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def jira_transitions():
    return default_transitions()
