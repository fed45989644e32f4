from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from transitiongate.config import CONFIG_FILE_EXTENSIONS, CONFIG_FILE_STEM
from transitiongate.errors import ConfigError

logger = logging.getLogger(__name__)


_YAML_BOOL_TAG = "tag:yaml.org,2002:bool"


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that resolves booleans the YAML 1.2 way.

    Only ``true``/``false`` become booleans, so conditions such as
    ``action: on`` or ``state: yes`` stay strings and can match event values.
    """


_ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _YAML_BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_ConfigLoader.add_implicit_resolver(
    _YAML_BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


class ProjectTransitions(BaseModel):
    """Target-state mapping for one Jira project.

    ``to_state`` keeps the YAML declaration order; the first state whose
    conditions match an event wins.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    ignored_states: List[str] = Field(default_factory=list)
    to_state: Dict[str, List[Dict[str, Any]]]

    @field_validator("ignored_states", mode="before")
    @classmethod
    def _normalize_ignored(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]

    @field_validator("to_state", mode="before")
    @classmethod
    def _normalize_to_state(cls, value: Any) -> Dict[str, List[Dict[str, Any]]]:
        if not isinstance(value, dict):
            raise ValueError("to_state must be a mapping of state name to condition list")
        normalized: Dict[str, List[Dict[str, Any]]] = {}
        for state_name, conditions in value.items():
            if conditions is None:
                conditions = []
            if isinstance(conditions, dict):
                conditions = list(conditions.values())
            if not isinstance(conditions, list):
                raise ValueError(f"conditions for state `{state_name}` must be a list")
            normalized[str(state_name)] = [c for c in conditions if isinstance(c, dict)]
        return normalized


class TransitionConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    projects: Dict[str, ProjectTransitions]

    def ignored_states_for(self, project_key: str) -> List[str]:
        wanted = project_key.upper()
        for name, project in self.projects.items():
            if name.upper() == wanted:
                return list(project.ignored_states)
        return []


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


def load_transition_config(raw_yaml: str) -> TransitionConfig:
    try:
        data = yaml.load(raw_yaml, Loader=_ConfigLoader) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse transition YAML: {exc}") from exc
    if not isinstance(data, dict) or data.get("projects") is None:
        raise ConfigError("The YAML config file doesn't have a 'projects' key")
    try:
        config = TransitionConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid transition config: {_format_validation_error(exc)}") from exc

    for project_name in config.projects:
        logger.info("Project %s configuration loaded", project_name.upper())
    return config


def candidate_config_paths(workspace: Union[str, Path, None] = None) -> List[Path]:
    base = Path(workspace) if workspace else Path.cwd()
    return [base / f"{CONFIG_FILE_STEM}{ext}" for ext in CONFIG_FILE_EXTENSIONS]


def read_config_source(
    inline_yaml: Optional[str] = None,
    workspace: Union[str, Path, None] = None,
    *,
    candidates: Optional[Sequence[Path]] = None,
) -> str:
    """
    Return the raw YAML to load.

    An inline override wins; otherwise the first existing canonical file is
    read (`.yml` before `.yaml`).
    """
    if inline_yaml and inline_yaml.strip():
        return inline_yaml
    paths = list(candidates) if candidates is not None else candidate_config_paths(workspace)
    for path in paths:
        if path.is_file():
            logger.debug("Reading transition config from %s", path)
            return path.read_text(encoding="utf-8")
    raise ConfigError(
        f"No GitHub event configuration found as an input or as yml file in {CONFIG_FILE_STEM}"
    )


def load_config(inline_yaml: Optional[str] = None, workspace: Union[str, Path, None] = None) -> TransitionConfig:
    return load_transition_config(read_config_source(inline_yaml, workspace))
