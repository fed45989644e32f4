from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from transitiongate.observability.internal_metrics import incr
from transitiongate.rules.config import TransitionConfig
from transitiongate.transitions.item import TrackedItem
from transitiongate.transitions.selector import has_name, select_transition
from transitiongate.transitions.tracker import Tracker
from transitiongate.transitions.types import BatchReport, Outcome

logger = logging.getLogger(__name__)


def split_item_keys(item_keys: Union[str, Sequence[str]]) -> List[str]:
    raw = item_keys.split(",") if isinstance(item_keys, str) else list(item_keys)
    return [key.strip() for key in raw if key and key.strip()]


async def process_item(
    key: str,
    tracker: Tracker,
    config: TransitionConfig,
    event: Mapping[str, Any],
    *,
    fail_on_error: bool = False,
    log: Optional[logging.Logger] = None,
) -> Outcome:
    log = logging.LoggerAdapter(log or logger, {"issue": key})
    item = await TrackedItem.build(key, tracker, config, event, fail_on_error=fail_on_error, log=log)
    transition = select_transition(item)

    if not has_name(transition):
        log.info("Possible transitions:")
        log.info("\n".join(item.transition_log))
        return item.to_outcome()

    log.info("%s will attempt to transition to: %s", key, transition.model_dump_json())
    try:
        log.info("Applying transition for %s", key)
        await tracker.apply_transition(key, transition)
        await item.refresh_status(tracker)
    except Exception:
        log.error("Transition failed for %s", key)
        raise
    incr("transitions_applied")
    log.info("Changed %s status from %s to %s.", key, item.status_before, item.status)
    return item.to_outcome()


async def run_batch(
    item_keys: Union[str, Sequence[str]],
    tracker: Tracker,
    config: TransitionConfig,
    event: Mapping[str, Any],
    *,
    fail_on_error: bool = False,
    log: Optional[logging.Logger] = None,
) -> BatchReport:
    """
    Transition every issue in ``item_keys`` concurrently.

    Without ``fail_on_error`` every pipeline runs to completion and failed
    issues are logged and counted but left out of the outcomes. With
    ``fail_on_error`` the first failure cancels the remaining pipelines and is
    re-raised. Outcomes are in completion order.
    """
    log = log or logger
    keys = split_item_keys(item_keys)
    outcomes: List[Outcome] = []

    async def _pipeline(key: str) -> Outcome:
        outcome = await process_item(key, tracker, config, event, fail_on_error=fail_on_error, log=log)
        outcomes.append(outcome)
        return outcome

    tasks = [asyncio.ensure_future(_pipeline(key)) for key in keys]
    if fail_on_error:
        try:
            await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            # Let cancelled pipelines unwind before the caller sees the error.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
    else:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                log.error(
                    "Processing failed for %s: %s", key, result, exc_info=result, extra={"issue": key}
                )
            elif isinstance(result, BaseException):
                raise result

    report = BatchReport(succeeded=len(outcomes), failed=len(keys) - len(outcomes), outcomes=outcomes)
    incr("items_succeeded", report.succeeded)
    incr("items_failed", report.failed)
    log.info("Successes: %s Failures: %s", report.succeeded, report.failed)
    return report


def run_batch_sync(
    item_keys: Union[str, Sequence[str]],
    tracker: Tracker,
    config: TransitionConfig,
    event: Mapping[str, Any],
    *,
    fail_on_error: bool = False,
    log: Optional[logging.Logger] = None,
) -> BatchReport:
    return asyncio.run(
        run_batch(item_keys, tracker, config, event, fail_on_error=fail_on_error, log=log)
    )
