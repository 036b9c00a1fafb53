"""
Unit tests for data models.
"""
from datetime import datetime

from ai_dev_team.core.enums import BuildStatus, StepStatus
from ai_dev_team.core.models import (
    BuildResult, CostEntry, MarketplaceRoleMetadata, ProgressStep, ProjectProgress,
    RoleResult, TokenUsage, WorkflowStep,
)


class TestWorkflowStep:
    """Test WorkflowStep model."""

    def test_label_defaults_to_output_key(self):
        assert WorkflowStep("pm", "x", "requirements").label == "requirements"
        assert WorkflowStep("pm", "x", "requirements", name="Plan").label == "Plan"

    def test_from_dict_accepts_camel_case_key(self):
        step = WorkflowStep.from_dict({"role": "pm", "outputKey": "requirements"})

        assert step.output_key == "requirements"
        assert step.input == ""

    def test_to_dict_omits_empty_name(self):
        step = WorkflowStep("pm", {"a": "{{b}}"}, "out")

        assert step.to_dict() == {"role": "pm", "input": {"a": "{{b}}"}, "output_key": "out"}
        assert WorkflowStep.from_dict(step.to_dict()) == step


class TestRoleResult:

    def test_defaults(self):
        result = RoleResult(output="done")

        assert result.cost == 0.0
        assert result.next_steps == []
        assert result.dependencies == []
        assert result.raw is None

    def test_lists_not_shared(self):
        first, second = RoleResult(output=1), RoleResult(output=2)
        first.next_steps.append("x")

        assert second.next_steps == []


class TestUsageAndCost:

    def test_token_totals(self):
        assert TokenUsage(10, 5).total_tokens == 15

        entry = CostEntry("mock", "m", 100, 50, 0.25, "pm")
        assert entry.total_tokens == 150
        assert entry.to_dict()["purpose"] == "pm"
        assert isinstance(entry.timestamp, datetime)


class TestProgressModels:

    def test_progress_round_trip(self):
        progress = ProjectProgress(
            run_id="run-1",
            percentage=40.0,
            current_step="Frontend",
            steps=[
                ProgressStep("Requirements", StepStatus.COMPLETED, cost=0.1,
                             started_at=datetime(2024, 1, 1, 10), ended_at=datetime(2024, 1, 1, 10, 1)),
                ProgressStep("Frontend", StepStatus.RUNNING),
            ],
        )

        restored = ProjectProgress.from_dict(progress.to_dict())

        assert restored.run_id == "run-1"
        assert restored.percentage == 40.0
        assert restored.started_at == progress.started_at
        assert restored.steps == progress.steps

    def test_get_step(self):
        progress = ProjectProgress("run-2", steps=[ProgressStep("a"), ProgressStep("b")])

        assert progress.get_step("b").status == StepStatus.PENDING
        assert progress.get_step("c") is None


class TestMarketplaceAndBuild:

    def test_metadata_to_dict(self):
        meta = MarketplaceRoleMetadata(id="r", name="R", description="d", price=9, capabilities=("a", "b"))

        data = meta.to_dict()
        assert data["capabilities"] == ["a", "b"]
        assert data["version"] == "1.0.0"

    def test_build_result_to_dict_skips_none(self):
        result = BuildResult(status=BuildStatus.ERROR, run_id="run-3", message="boom")

        assert result.to_dict() == {"status": "error", "run_id": "run-3", "message": "boom"}
