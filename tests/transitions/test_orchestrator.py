import asyncio
import logging

import pytest

from transitiongate.errors import ItemNotFoundError, TransitionApplyError
from transitiongate.observability.internal_metrics import snapshot
from transitiongate.rules.config import load_transition_config
from transitiongate.transitions.orchestrator import run_batch, run_batch_sync, split_item_keys
from transitiongate.transitions.types import Transition


def test_split_item_keys_trims_and_drops_blanks():
    assert split_item_keys(" DVPS-1, DVPS-2 ,,DVPS-3, ") == ["DVPS-1", "DVPS-2", "DVPS-3"]
    assert split_item_keys(["DVPS-1 ", ""]) == ["DVPS-1"]


def test_single_issue_is_transitioned(tracker_factory):
    config = load_transition_config(
        """
        projects:
          DVPS:
            to_state:
              "In Progress":
                - eventName: create
        """
    )
    tracker = tracker_factory(
        {"DVPS-1": "To Do"},
        {"DVPS-1": [Transition(id="11", name="Start", destination_status_name="In Progress")]},
    )
    report = run_batch_sync("DVPS-1", tracker, config, {"eventName": "create"})

    assert [(key, t.id) for key, t in tracker.applied] == [("DVPS-1", "11")]
    assert report.ok is True
    assert report.succeeded == 1
    assert report.failed == 0
    outcome = report.outcomes[0]
    assert outcome.item_key == "DVPS-1"
    assert outcome.status_before == "To Do"
    assert outcome.status_after == "In Progress"
    assert outcome.available_transition_ids == ["11"]
    assert outcome.available_transition_names == ["Start"]


def test_partial_failure_is_counted_and_run_still_succeeds(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do", "DVPS-3": "To Do"})
    report = run_batch_sync("DVPS-1,DVPS-2,DVPS-3", tracker, transition_config, {"eventName": "create"})

    assert report.succeeded == 2
    assert report.failed == 1
    assert len(report.outcomes) == 2
    assert {o.item_key for o in report.outcomes} == {"DVPS-1", "DVPS-3"}
    assert report.ok is True


def test_run_with_only_failures_is_not_ok(tracker_factory, transition_config):
    report = run_batch_sync("DVPS-1,DVPS-2", tracker_factory({}), transition_config, {"eventName": "create"})
    assert report.succeeded == 0
    assert report.failed == 2
    assert report.outcomes == []
    assert report.ok is False


def test_fail_on_error_aborts_the_run(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do", "DVPS-3": "To Do"})
    with pytest.raises(ItemNotFoundError):
        run_batch_sync(
            "DVPS-1,DVPS-2,DVPS-3", tracker, transition_config, {"eventName": "create"}, fail_on_error=True
        )


def test_fail_on_error_waits_for_cancelled_pipelines(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do"}, delays={"DVPS-1": 0.05})

    async def _run():
        current = asyncio.current_task()
        with pytest.raises(ItemNotFoundError):
            await run_batch(
                "DVPS-1,DVPS-2", tracker, transition_config, {"eventName": "create"}, fail_on_error=True
            )
        return [task.done() for task in asyncio.all_tasks() - {current}]

    assert all(asyncio.run(_run()))
    assert tracker.applied == []


def test_rejected_transition_counts_as_failure(tracker_factory, transition_config, caplog):
    tracker = tracker_factory({"DVPS-1": "To Do", "DVPS-2": "To Do"}, reject={"DVPS-2"})
    with caplog.at_level(logging.INFO):
        report = run_batch_sync("DVPS-1,DVPS-2", tracker, transition_config, {"eventName": "create"})

    assert report.succeeded == 1
    assert report.failed == 1
    assert [o.item_key for o in report.outcomes] == ["DVPS-1"]
    messages = [r.getMessage() for r in caplog.records]
    assert "Transition failed for DVPS-2" in messages
    assert "Successes: 1 Failures: 1" in messages
    issues = {r.getMessage(): getattr(r, "issue", None) for r in caplog.records}
    assert issues["Transition failed for DVPS-2"] == "DVPS-2"
    assert issues["Applying transition for DVPS-1"] == "DVPS-1"
    assert issues["Successes: 1 Failures: 1"] is None


def test_rejected_transition_is_raised_with_fail_on_error(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do"}, reject={"DVPS-1"})
    with pytest.raises(TransitionApplyError):
        run_batch_sync("DVPS-1", tracker, transition_config, {"eventName": "create"}, fail_on_error=True)


def test_unreachable_target_is_a_noop_outcome(tracker_factory, transition_config, caplog):
    tracker = tracker_factory(
        {"DVPS-1": "To Do"},
        {"DVPS-1": [Transition(id="51", name="Done", destination_status_name="done")]},
    )
    with caplog.at_level(logging.INFO):
        report = run_batch_sync("DVPS-1", tracker, transition_config, {"eventName": "create"})

    assert tracker.applied == []
    assert report.succeeded == 1
    outcome = report.outcomes[0]
    assert outcome.status_before == outcome.status_after == "To Do"
    messages = [r.getMessage() for r in caplog.records]
    assert "Possible transitions:" in messages
    assert "{ id: 51, name: Done } transitions issue to 'done' status." in messages


def test_no_target_state_is_a_noop_outcome(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do"})
    report = run_batch_sync("DVPS-1", tracker, transition_config, {"eventName": "push"})
    assert tracker.applied == []
    assert report.outcomes[0].status_after == "To Do"
    assert ("apply_transition", "DVPS-1") not in tracker.calls


def test_outcomes_follow_completion_order(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do", "DVPS-2": "To Do"}, delays={"DVPS-1": 0.05})
    report = run_batch_sync("DVPS-1,DVPS-2", tracker, transition_config, {"eventName": "push"})
    assert [o.item_key for o in report.outcomes] == ["DVPS-2", "DVPS-1"]


def test_slow_failure_does_not_block_other_issues(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-2": "To Do"}, delays={"DVPS-1": 0.05})

    async def _run():
        return await run_batch("DVPS-1,DVPS-2", tracker, transition_config, {"eventName": "create"})

    report = asyncio.run(_run())
    assert [o.item_key for o in report.outcomes] == ["DVPS-2"]
    assert report.failed == 1


def test_outcome_report_uses_action_output_keys(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-336": "To Do"})
    report = run_batch_sync("DVPS-336", tracker, transition_config, {"eventName": "create"})
    assert report.outcomes_json() == [
        {
            "issue": "DVPS-336",
            "names": ["In Progress", "Code Review", "On Hold", "Testing", "Done"],
            "ids": ["11", "21", "31", "41", "51"],
            "status": "In Progress",
            "beforestatus": "To Do",
        }
    ]


def test_run_records_counters(tracker_factory, transition_config):
    tracker = tracker_factory({"DVPS-1": "To Do", "DVPS-3": "To Do"})
    run_batch_sync("DVPS-1,DVPS-2,DVPS-3", tracker, transition_config, {"eventName": "create"})
    metrics = snapshot()
    assert metrics["items_succeeded"] == 2
    assert metrics["items_failed"] == 1
    assert metrics["transitions_applied"] == 2
