import os
import requests
from typing import Dict, Any, List, Optional

from transitiongate.config import (
    JIRA_API_TOKEN_ENV,
    JIRA_BASE_URL_ENV,
    JIRA_USER_EMAIL_ENV,
    jira_timeout_seconds,
)
from transitiongate.errors import ItemNotFoundError, TrackerError, TransitionApplyError


class JiraClientError(TrackerError):
    """Base Jira integration error."""


class JiraDependencyTimeout(JiraClientError):
    """Raised when Jira API calls exceed configured timeout."""


class JiraDependencyUnavailable(JiraClientError):
    """Raised for transport/server errors from Jira dependency."""


class JiraClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        email: Optional[str] = None,
        token: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
    ):
        self.base_url = (base_url or os.getenv(JIRA_BASE_URL_ENV, "")).rstrip("/")
        self.email = email or os.getenv(JIRA_USER_EMAIL_ENV, "")
        self.token = token or os.getenv(JIRA_API_TOKEN_ENV, "")
        self.auth = (self.email, self.token)
        self.headers = {"Accept": "application/json", "Content-Type": "application/json"}
        self.default_timeout_seconds = timeout_seconds if timeout_seconds is not None else jira_timeout_seconds()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> requests.Response:
        effective_timeout = timeout if timeout is not None else self.default_timeout_seconds
        try:
            return requests.request(
                method.upper(),
                self._url(path),
                auth=self.auth,
                headers=self.headers,
                timeout=effective_timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            raise JiraDependencyTimeout(f"Jira {method.upper()} {path} timed out after {effective_timeout}s") from exc
        except requests.RequestException as exc:
            raise JiraDependencyUnavailable(f"Jira {method.upper()} {path} request failed: {exc}") from exc

    def check_permissions(self) -> bool:
        """Health check: verifies credentials and basic read access."""
        if not all([self.base_url, self.email, self.token]):
            return False
        try:
            resp = self._request("GET", "/rest/api/2/myself", timeout=min(self.default_timeout_seconds, 5))
            return resp.status_code == 200
        except JiraClientError:
            return False

    def get_issue(self, issue_key: str, fields: Optional[List[str]] = None) -> Dict[str, Any]:
        """Fetch an issue. Raises ItemNotFoundError when Jira does not know the key."""
        params = {"fields": ",".join(fields)} if fields else None
        resp = self._request("GET", f"/rest/api/2/issue/{issue_key}", params=params)
        if resp.status_code == 404:
            raise ItemNotFoundError(f"Issue not found: {issue_key}")
        if resp.status_code != 200:
            raise JiraDependencyUnavailable(
                f"Jira issue fetch failed with status {resp.status_code} for {issue_key}"
            )
        return resp.json() or {}

    def get_transitions(self, issue_key: str) -> Optional[List[Dict[str, Any]]]:
        """
        List the transitions Jira allows for the issue in its current status.
        Returns None when the response carries no `transitions` field.
        """
        resp = self._request("GET", f"/rest/api/2/issue/{issue_key}/transitions")
        if resp.status_code == 404:
            raise ItemNotFoundError(f"Issue not found: {issue_key}")
        if resp.status_code != 200:
            raise JiraDependencyUnavailable(
                f"Jira transition lookup failed with status {resp.status_code} for {issue_key}"
            )
        payload = resp.json() or {}
        transitions = payload.get("transitions")
        if transitions is None:
            return None
        return [row for row in transitions if isinstance(row, dict)]

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        resp = self._request(
            "POST",
            f"/rest/api/2/issue/{issue_key}/transitions",
            json={"transition": {"id": str(transition_id)}},
        )
        if resp.status_code not in (200, 204):
            raise TransitionApplyError(
                f"Jira rejected transition {transition_id} for {issue_key} "
                f"with status {resp.status_code}: {resp.text[:500]}"
            )
