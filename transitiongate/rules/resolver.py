from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

import yaml

from transitiongate.rules.config import TransitionConfig
from transitiongate.rules.matcher import matches

logger = logging.getLogger(__name__)

NO_TARGET_STATE = ""


def resolve_target_state(
    config: TransitionConfig,
    project_key: str,
    event: Mapping[str, Any],
    *,
    log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> str:
    """
    Map a CI event to the Jira state a project's issues should move to.

    Project keys are compared exactly as stored in the configuration; callers
    upper-case the key parsed from the issue. States are tried in declaration
    order and, within a state, conditions in declaration order. The first
    matching condition decides. Returns ``NO_TARGET_STATE`` when the project is
    unknown or nothing matches.
    """
    log = log or logger
    log.debug("starting resolve_target_state(%s)", project_key)
    if log.isEnabledFor(logging.DEBUG):
        log.debug("Event context is \n%s", yaml.safe_dump(dict(event), sort_keys=False, default_flow_style=False))

    project = config.projects.get(project_key)
    if project is None:
        log.debug("No project found in config named %s", project_key)
        return NO_TARGET_STATE

    for state_name, conditions in project.to_state.items():
        log.debug("Checking event context against conditions needed to transition to %s", state_name)
        for condition in conditions:
            if matches(event, condition):
                log.debug("Event context meets the conditions to transition to %s", state_name)
                return state_name
    return NO_TARGET_STATE
