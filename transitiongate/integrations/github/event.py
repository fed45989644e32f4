from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from transitiongate.errors import InputError

logger = logging.getLogger(__name__)


def _read_event_payload(path: str) -> Dict[str, Any]:
    event_path = Path(path)
    if not event_path.is_file():
        logger.warning("GITHUB_EVENT_PATH %s does not exist", path)
        return {}
    try:
        with event_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except ValueError as exc:
        # Covers malformed JSON and undecodable bytes.
        raise InputError(f"GITHUB_EVENT_PATH {path} is not a valid JSON event: {exc}") from exc
    return data if isinstance(data, dict) else {}


def _int_or_none(raw: Optional[str]) -> Optional[int]:
    if raw is None or not str(raw).strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def load_event_context(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Build the event context conditions are matched against.

    Mirrors the GitHub Actions context object: `eventName`, `action`,
    `payload` (the webhook body) and run metadata. `action` is the webhook's
    activity type (e.g. `opened`), falling back to GITHUB_ACTION.
    """
    env = os.environ if env is None else env
    event_path = env.get("GITHUB_EVENT_PATH")
    payload = _read_event_payload(event_path) if event_path else {}

    action = payload.get("action")
    if action is None:
        action = env.get("GITHUB_ACTION")

    return {
        "eventName": env.get("GITHUB_EVENT_NAME"),
        "action": action,
        "payload": payload,
        "ref": env.get("GITHUB_REF"),
        "sha": env.get("GITHUB_SHA"),
        "workflow": env.get("GITHUB_WORKFLOW"),
        "actor": env.get("GITHUB_ACTOR"),
        "job": env.get("GITHUB_JOB"),
        "runId": _int_or_none(env.get("GITHUB_RUN_ID")),
        "runNumber": _int_or_none(env.get("GITHUB_RUN_NUMBER")),
    }
