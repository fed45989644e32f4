from __future__ import annotations

from transitiongate.reporting.write_report import append_github_output, write_json_report_atomic

__all__ = [
    "append_github_output",
    "write_json_report_atomic",
]
