from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List, Union

from transitiongate.storage.atomic import atomic_write

JsonReport = Union[Dict[str, Any], List[Any]]


def write_json_report_atomic(path: str, payload: JsonReport) -> None:
    """
    Atomic JSON writer for CI-facing reports.

    Writes UTF-8 bytes with stable key ordering so downstream tools can hash
    and diff reports reliably.
    """
    data = json.dumps(payload, sort_keys=True, ensure_ascii=False, indent=2).encode("utf-8") + b"\n"
    with atomic_write(path, "wb") as f:
        f.write(data)


def append_github_output(path: str, name: str, value: str) -> None:
    """Append a step output in the `$GITHUB_OUTPUT` file format."""
    with open(path, "a", encoding="utf-8") as handle:
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            handle.write(f"{name}={value}\n")
