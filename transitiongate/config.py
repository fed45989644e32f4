import os
from dotenv import load_dotenv

# Load params from .env file
load_dotenv()

# Canonical configuration file, checked with each extension in order
CONFIG_FILE_STEM = ".github/github_event_jira_transitions."
CONFIG_FILE_EXTENSIONS = ("yml", "yaml")

# Jira credentials (environment wins over action inputs)
JIRA_BASE_URL_ENV = "JIRA_BASE_URL"
JIRA_USER_EMAIL_ENV = "JIRA_USER_EMAIL"
JIRA_API_TOKEN_ENV = "JIRA_API_TOKEN"

# Issue keys look like PROJ-123
ISSUE_KEY_PATTERN = r"^(?P<project>[A-Z]{2,10})-\d+$"

DEFAULT_JIRA_TIMEOUT_SECONDS = 10.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def jira_timeout_seconds() -> float:
    """
    Per-request timeout for Jira REST calls.
    There is no retry layer; a timed out call fails the issue's pipeline.
    """
    return max(0.1, _env_float("TRANSITIONGATE_JIRA_TIMEOUT_SECONDS", DEFAULT_JIRA_TIMEOUT_SECONDS))


def log_level() -> str:
    return (os.getenv("TRANSITIONGATE_LOG_LEVEL", "INFO") or "INFO").upper()


def log_format() -> str:
    return (os.getenv("TRANSITIONGATE_LOG_FORMAT", "json") or "json").strip().lower()
