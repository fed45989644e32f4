from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel

from transitiongate.config import JIRA_API_TOKEN_ENV, JIRA_BASE_URL_ENV, JIRA_USER_EMAIL_ENV
from transitiongate.errors import InputError

logger = logging.getLogger(__name__)


class JiraAuthConfig(BaseModel):
    base_url: str
    email: str
    token: str


class ActionInputs(BaseModel):
    jira: JiraAuthConfig
    issues: str = ""
    fail_on_error: bool = False
    jira_transitions_yaml: Optional[str] = None
    workspace: str


def _action_input(env: Mapping[str, str], name: str) -> str:
    # GitHub exposes `with:` inputs as INPUT_<NAME>, spaces as underscores.
    return str(env.get(f"INPUT_{name.replace(' ', '_').upper()}", "") or "").strip()


def _first(*values: Optional[str]) -> str:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def load_inputs(
    env: Optional[Mapping[str, str]] = None,
    *,
    issues: Optional[str] = None,
    fail_on_error: Optional[bool] = None,
    jira_transitions_yaml: Optional[str] = None,
    workspace: Optional[str] = None,
) -> ActionInputs:
    """
    Collect inputs for a transition run.

    Explicit arguments (from the CLI) win over action inputs. Jira credentials
    come from JIRA_* environment variables first, then action inputs.
    """
    env = os.environ if env is None else env

    base_url = _first(env.get(JIRA_BASE_URL_ENV), _action_input(env, "jira_base_url"))
    if not base_url:
        raise InputError("JIRA_BASE_URL env not defined, or supplied as action input jira_base_url")
    token = _first(env.get(JIRA_API_TOKEN_ENV), _action_input(env, "jira_api_token"))
    if not token:
        raise InputError("JIRA_API_TOKEN env not defined, or supplied as action input jira_api_token")
    email = _first(env.get(JIRA_USER_EMAIL_ENV), _action_input(env, "jira_user_email"))
    if not email:
        raise InputError("JIRA_USER_EMAIL env not defined, or supplied as action input jira_user_email")

    resolved_issues = _first(issues, _action_input(env, "issues"))
    logger.debug("issues = %s", resolved_issues)

    if fail_on_error is None:
        fail_on_error = _action_input(env, "fail_on_error").lower() == "true"

    workspace_raw = _first(workspace, env.get("GITHUB_WORKSPACE"))
    if not workspace_raw:
        raise InputError("GITHUB_WORKSPACE not defined")
    workspace_path = Path(workspace_raw).resolve()
    logger.debug("GITHUB_WORKSPACE = '%s'", workspace_path)
    if not workspace_path.is_dir():
        raise InputError(f"Directory '{workspace_path}' does not exist")

    transitions_yaml = jira_transitions_yaml
    if transitions_yaml is None:
        transitions_yaml = str(env.get("INPUT_JIRA_TRANSITIONS_YAML", "") or "")
    logger.debug("Jira Transitions YAML input: \n%s", transitions_yaml)

    return ActionInputs(
        jira=JiraAuthConfig(base_url=base_url, email=email, token=token),
        issues=resolved_issues,
        fail_on_error=bool(fail_on_error),
        jira_transitions_yaml=transitions_yaml or None,
        workspace=str(workspace_path),
    )
