import argparse
import json
import os
import sys

from transitiongate import __version__


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="transitiongate")
    sub = p.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("transition", help="Transition Jira issues for the current GitHub event.")
    run_p.add_argument("--issues", help="Comma delimited Jira issue keys (else INPUT_ISSUES)")
    run_p.add_argument(
        "--fail-on-error",
        action="store_true",
        default=None,
        help="Abort the run on the first issue that fails (else INPUT_FAIL_ON_ERROR)",
    )
    run_p.add_argument("--transitions-yaml", help="Inline YAML that overrides the config file")
    run_p.add_argument("--transitions-file", help="Read the override YAML from this file")
    run_p.add_argument("--workspace", help="Checkout directory (else GITHUB_WORKSPACE)")
    run_p.add_argument("--output", help="Write the JSON outcome report to file")
    run_p.add_argument("--format", default="json", choices=["json", "text"])

    validate_p = sub.add_parser("validate-config", help="Validate the event-to-state configuration.")
    validate_p.add_argument("--transitions-yaml", help="Inline YAML to validate instead of the config file")
    validate_p.add_argument("--workspace", help="Directory holding .github/ (default: cwd)")
    validate_p.add_argument("--check-jira", action="store_true", help="Also verify Jira credentials")
    validate_p.add_argument("--format", default="text", choices=["json", "text"])

    sub.add_parser("version", help="Print version.")
    return p


def _run_transition(args: argparse.Namespace) -> int:
    from transitiongate.errors import ConfigError, InputError
    from transitiongate.inputs import load_inputs
    from transitiongate.integrations.github.event import load_event_context
    from transitiongate.integrations.jira.client import JiraClient
    from transitiongate.integrations.jira.tracker import JiraTracker
    from transitiongate.reporting import append_github_output, write_json_report_atomic
    from transitiongate.rules.config import load_config
    from transitiongate.transitions.orchestrator import run_batch_sync

    transitions_yaml = args.transitions_yaml
    if args.transitions_file:
        try:
            with open(args.transitions_file, "r", encoding="utf-8") as f:
                transitions_yaml = f.read()
        except OSError as e:
            print(f"Error reading {args.transitions_file}: {e}", file=sys.stderr)
            return 1

    try:
        inputs = load_inputs(
            issues=args.issues,
            fail_on_error=args.fail_on_error,
            jira_transitions_yaml=transitions_yaml,
            workspace=args.workspace,
        )
        config = load_config(inputs.jira_transitions_yaml, inputs.workspace)
        event = load_event_context()
    except (InputError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tracker = JiraTracker(JiraClient(inputs.jira.base_url, inputs.jira.email, inputs.jira.token))

    try:
        report = run_batch_sync(
            inputs.issues,
            tracker,
            config,
            event,
            fail_on_error=inputs.fail_on_error,
        )
    except Exception as e:
        print(f"Transition run failed: {e}", file=sys.stderr)
        return 1

    outputs = report.outcomes_json()
    if args.format == "json":
        print(json.dumps(outputs, indent=2))
    else:
        print(f"Successes: {report.succeeded} Failures: {report.failed}")
        for row in outputs:
            print(f" - {row['issue']}: {row['beforestatus']} -> {row['status']}")

    if args.output:
        try:
            write_json_report_atomic(args.output, outputs)
        except OSError as e:
            print(f"Error writing output {args.output}: {e}", file=sys.stderr)
            return 1

    github_output = os.getenv("GITHUB_OUTPUT")
    if github_output:
        append_github_output(github_output, "issueOutputs", json.dumps(outputs))

    return 0 if report.ok else 1


def _run_validate(args: argparse.Namespace) -> int:
    from transitiongate.validate import format_validation_report, validate_config

    report = validate_config(
        inline_yaml=args.transitions_yaml,
        workspace=args.workspace,
        check_jira=args.check_jira,
    )
    if args.format == "json":
        print(json.dumps(report, indent=2))
    else:
        print(format_validation_report(report))
    return 0 if report["ok"] else 1


def main() -> int:
    # If no arguments provided, show help
    if len(sys.argv) == 1:
        sys.argv.append("--help")

    p = build_parser()
    args = p.parse_args()

    from transitiongate.observability.logs import configure_logging
    configure_logging()

    if args.cmd == "version":
        print(f"transitiongate {__version__}")
        return 0

    if args.cmd == "transition":
        return _run_transition(args)

    if args.cmd == "validate-config":
        return _run_validate(args)

    return 2


if __name__ == "__main__":
    sys.exit(main())
