from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from transitiongate.errors import ConfigError
from transitiongate.integrations.jira.client import JiraClient
from transitiongate.rules.config import TransitionConfig, load_transition_config, read_config_source


@dataclass
class ConfigIssue:
    severity: Literal["ERROR", "WARN"]
    code: str
    message: str
    location: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        payload = {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
        }
        if self.location:
            payload["location"] = self.location
        return payload


def _project_issues(config: TransitionConfig) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    for project_key, project in config.projects.items():
        location = f"projects.{project_key}"
        if project_key != project_key.upper():
            # Issue keys are upper-cased before lookup, so this project never matches.
            issues.append(
                ConfigIssue(
                    severity="WARN",
                    code="PROJECT_KEY_NOT_UPPERCASE",
                    message=f"project `{project_key}` will never match; use `{project_key.upper()}`.",
                    location=location,
                )
            )
        if not project.to_state:
            issues.append(
                ConfigIssue(
                    severity="WARN",
                    code="PROJECT_NO_STATES",
                    message=f"project `{project_key}` defines no target states.",
                    location=f"{location}.to_state",
                )
            )
        for state_name, conditions in project.to_state.items():
            if not conditions:
                issues.append(
                    ConfigIssue(
                        severity="WARN",
                        code="STATE_NO_CONDITIONS",
                        message=f"state `{state_name}` has no conditions and can never be selected.",
                        location=f"{location}.to_state.{state_name}",
                    )
                )
            elif any(not condition for condition in conditions):
                issues.append(
                    ConfigIssue(
                        severity="WARN",
                        code="STATE_EMPTY_CONDITION",
                        message=f"state `{state_name}` has an empty condition, which never matches.",
                        location=f"{location}.to_state.{state_name}",
                    )
                )
    return issues


def _project_summary(config: TransitionConfig) -> List[Dict[str, Any]]:
    summary = []
    for project_key, project in config.projects.items():
        summary.append(
            {
                "project": project_key,
                "states": list(project.to_state.keys()),
                "condition_count": sum(len(c) for c in project.to_state.values()),
                "ignored_states": config.ignored_states_for(project_key),
            }
        )
    return summary


def validate_config(
    *,
    inline_yaml: Optional[str] = None,
    workspace: Union[str, Path, None] = None,
    check_jira: bool = False,
    jira_client: Optional[JiraClient] = None,
) -> Dict[str, Any]:
    issues: List[ConfigIssue] = []
    config: Optional[TransitionConfig] = None

    try:
        config = load_transition_config(read_config_source(inline_yaml, workspace))
    except ConfigError as exc:
        issues.append(
            ConfigIssue(
                severity="ERROR",
                code="CONFIG_INVALID",
                message=str(exc),
                location="inline" if inline_yaml else str(workspace or "."),
            )
        )

    if config is not None:
        issues.extend(_project_issues(config))

    if check_jira:
        client = jira_client or JiraClient()
        if not client.check_permissions():
            issues.append(
                ConfigIssue(
                    severity="WARN",
                    code="JIRA_CONNECTIVITY_UNAVAILABLE",
                    message="Jira connectivity check failed; credentials are unavailable or invalid.",
                    location="jira_connectivity",
                )
            )

    errors = [issue.as_dict() for issue in issues if issue.severity == "ERROR"]
    warnings = [issue.as_dict() for issue in issues if issue.severity == "WARN"]
    status = "FAIL" if errors else ("WARN" if warnings else "OK")
    return {
        "status": status,
        "ok": not errors,
        "error_count": len(errors),
        "warning_count": len(warnings),
        "issues": [issue.as_dict() for issue in issues],
        "projects": _project_summary(config) if config is not None else [],
    }


def format_validation_report(report: Dict[str, Any]) -> str:
    lines = [
        f"Transition Config Validation: {report.get('status', 'FAIL')}",
        f"Projects: {len(report.get('projects') or [])}",
        f"Errors: {report.get('error_count', 0)}",
        f"Warnings: {report.get('warning_count', 0)}",
    ]
    for project in report.get("projects") or []:
        lines.append(
            f"- {project['project']}: {len(project['states'])} states, "
            f"{project['condition_count']} conditions"
        )
        if project["ignored_states"]:
            lines.append(f"  ignored_states (not enforced): {', '.join(project['ignored_states'])}")
    issues = report.get("issues") or []
    if issues:
        lines.append("")
        lines.append("Issues:")
        for issue in issues:
            location = f" ({issue['location']})" if issue.get("location") else ""
            lines.append(
                f"- [{issue.get('severity')}] {issue.get('code')}: {issue.get('message')}{location}"
            )
    return "\n".join(lines)
