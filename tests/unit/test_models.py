"""Tests for command and scenario definitions."""

from __future__ import annotations

import pytest

from callforge._internal.errors import ConfigurationError, ScenarioDefinitionError, ScenarioError
from callforge.dsl.models import (
    CommandDefinition,
    PollingPolicy,
    ScenarioDescriptor,
    Step,
)

SCENARIO = {
    "type": "job_with_polling",
    "steps": [
        {
            "name": "schedule_job",
            "method": "POST",
            "endpoint": "/jobs",
            "body": '{"name": "{name}"}',
            "extract_response": {"job_id": "$.id"},
        },
        {
            "name": "poll_job",
            "method": "GET",
            "endpoint": "/jobs/{job_id}",
            "polling": {
                "interval_seconds": 0.5,
                "timeout_seconds": 10,
                "completion_conditions": [
                    {"status": "done", "action": "success"},
                    {"status": "failed", "action": "error", "error_field": "$.error"},
                ],
            },
        },
    ],
}


def _step(name: str, polling: PollingPolicy | None = None) -> Step:
    return Step(name=name, method="GET", endpoint="/x", polling=polling)


class TestFromDict:
    """Tests for the from_dict constructors."""

    def test_scenario_round_trip(self) -> None:
        scenario = ScenarioDescriptor.from_dict(SCENARIO)
        schedule, poll = scenario.steps
        assert scenario.type == "job_with_polling"
        assert schedule.extract == {"job_id": "$.id"}
        assert poll.polling is not None
        assert poll.polling.interval_seconds == 0.5
        assert poll.polling.timeout_seconds == 10.0
        assert [c.status for c in poll.polling.completion_conditions] == ["done", "failed"]
        assert poll.polling.completion_conditions[1].error_field == "$.error"

    def test_step_accepts_extract_alias(self) -> None:
        step = Step.from_dict({"name": "s", "method": "GET", "endpoint": "/", "extract": {"a": "$.a"}})
        assert step.extract == {"a": "$.a"}

    def test_missing_required_field(self) -> None:
        with pytest.raises(ConfigurationError, match="'endpoint'"):
            Step.from_dict({"name": "s", "method": "GET"})

    def test_command_definition(self) -> None:
        command = CommandDefinition.from_dict(
            {
                "name": "upload",
                "method": "POST",
                "endpoint": "/files",
                "multipart": True,
                "table_view": ["id", "name"],
                "args": [
                    {"name": "file", "type": "file", "file_upload": True},
                    {"name": "src", "type": "file", "file-overrides-value-of": "payload"},
                ],
            }
        )
        assert command.multipart is True
        assert command.table_view == ("id", "name")
        assert command.args[0].file_upload is True
        assert command.args[1].arg_type == "file"
        assert command.args[1].file_overrides_value_of == "payload"
        assert command.scenario is None

    def test_command_with_scenario(self) -> None:
        command = CommandDefinition.from_dict({"name": "job", "scenario": SCENARIO})
        assert command.scenario is not None
        assert len(command.scenario.steps) == 2


class TestScenarioValidate:
    """Tests for ScenarioDescriptor.validate()."""

    def test_valid_scenario(self) -> None:
        schedule, poll, policy = ScenarioDescriptor.from_dict(SCENARIO).validate()
        assert schedule.name == "schedule_job"
        assert poll.name == "poll_job"
        assert policy is poll.polling

    def test_unsupported_type(self) -> None:
        scenario = ScenarioDescriptor(type="fan_out", steps=())
        with pytest.raises(ConfigurationError, match="Unsupported scenario type: fan_out"):
            scenario.validate()

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_wrong_step_count(self, count: int) -> None:
        policy = PollingPolicy(interval_seconds=1, timeout_seconds=1)
        steps = tuple(_step("schedule_job", policy) for _ in range(count))
        with pytest.raises(ScenarioDefinitionError, match="exactly 2 steps"):
            ScenarioDescriptor(type="job_with_polling", steps=steps).validate()

    def test_wrong_first_step_name(self) -> None:
        policy = PollingPolicy(interval_seconds=1, timeout_seconds=1)
        scenario = ScenarioDescriptor(type="job_with_polling", steps=(_step("create"), _step("poll_job", policy)))
        with pytest.raises(ScenarioDefinitionError, match="schedule_job"):
            scenario.validate()

    def test_wrong_second_step_name(self) -> None:
        policy = PollingPolicy(interval_seconds=1, timeout_seconds=1)
        scenario = ScenarioDescriptor(type="job_with_polling", steps=(_step("schedule_job"), _step("wait", policy)))
        with pytest.raises(ScenarioDefinitionError, match="poll_job"):
            scenario.validate()

    def test_poll_step_without_policy(self) -> None:
        scenario = ScenarioDescriptor(type="job_with_polling", steps=(_step("schedule_job"), _step("poll_job")))
        with pytest.raises(ScenarioDefinitionError, match="polling configuration"):
            scenario.validate()

    def test_definition_error_is_both_config_and_scenario_error(self) -> None:
        assert issubclass(ScenarioDefinitionError, ConfigurationError)
        assert issubclass(ScenarioDefinitionError, ScenarioError)
