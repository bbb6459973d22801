"""Schedule a job and poll until it finishes.

The command is defined the way a YAML command file would declare it and
parsed with ``CommandDefinition.from_dict``. Run it with:

    python examples/job_polling.py nightly-report
"""

from __future__ import annotations

import logging
import sys

from callforge import CallForgeError, CommandDefinition, LoadHarness, load_config, setup_logging

EXPORT_JOB = CommandDefinition.from_dict(
    {
        "name": "export",
        "scenario": {
            "type": "job_with_polling",
            "steps": [
                {
                    "name": "schedule_job",
                    "method": "POST",
                    "endpoint": "/exports",
                    "headers": {"Content-Type": "application/json", "Idempotency-Key": "{uuid}"},
                    "body": '{"report": "{report}"}',
                    "extract_response": {"job_id": "$.job.id"},
                },
                {
                    "name": "poll_job",
                    "method": "GET",
                    "endpoint": "/exports/{job_id}",
                    "polling": {
                        "interval_seconds": 2,
                        "timeout_seconds": 300,
                        "completion_conditions": [
                            {"status": "completed", "action": "success"},
                            {"status": "failed", "action": "error", "error_field": "$.error.message"},
                            {"status": "cancelled", "action": "error", "error_message": "Export was cancelled"},
                        ],
                    },
                },
            ],
        },
    }
)


def main(report: str) -> int:
    """Run the export scenario once and print the final job document."""
    setup_logging(logging.INFO)
    harness = LoadHarness.for_command(
        EXPORT_JOB,
        {"report": report},
        (),
        load_config(),
        base_url="http://localhost:8080",
    )
    try:
        result = harness.run_sync()
    except CallForgeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if result.outcome is not None and result.outcome.body:
        print(result.outcome.body)
    return result.exit_code


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1] if len(sys.argv) > 1 else "daily"))
