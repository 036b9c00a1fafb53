"""
Unit tests for per-run progress tracking.
"""
import json
import pytest

from ai_dev_team.core.enums import StepStatus
from ai_dev_team.core.progress_tracker import ProgressTracker


STEPS = ["Requirements Analysis", "Frontend Development", "Backend Development"]


class TestProgressTracker:
    """Test ProgressTracker functionality."""

    def test_create_starts_pending(self):
        tracker = ProgressTracker()

        progress = tracker.create("run-1", STEPS)

        assert progress.percentage == 0
        assert progress.current_step == "Starting"
        assert [s.status for s in progress.steps] == [StepStatus.PENDING] * 3
        assert tracker.get("run-1") is progress
        assert tracker.list_runs() == ["run-1"]

    def test_update_sets_step_status_and_cost(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)

        tracker.update("run-1", 0, STEPS[0], StepStatus.RUNNING)
        tracker.update("run-1", 33.33, STEPS[0], StepStatus.COMPLETED, cost=0.02)

        step = tracker.get("run-1").get_step(STEPS[0])
        assert step.status == StepStatus.COMPLETED
        assert step.cost == 0.02
        assert step.started_at is not None and step.ended_at is not None
        assert tracker.get("run-1").percentage == 33.33

    def test_percentage_is_clamped(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)

        tracker.update("run-1", 250, STEPS[0])
        assert tracker.get("run-1").percentage == 100

    def test_percentage_never_decreases(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)

        tracker.update("run-1", 60, STEPS[1])
        tracker.update("run-1", 20, STEPS[0], StepStatus.ERROR)

        progress = tracker.get("run-1")
        assert progress.percentage == 60
        assert progress.current_step == STEPS[0]

    def test_negative_percentage_clamped_to_zero(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)

        tracker.update("run-1", -5, STEPS[0])

        assert tracker.get("run-1").percentage == 0

    def test_completed_flips_next_step_to_pending(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)
        tracker.get("run-1").steps[1].status = StepStatus.ERROR

        tracker.update("run-1", 33, STEPS[0], StepStatus.COMPLETED)

        assert tracker.get("run-1").steps[1].status == StepStatus.PENDING

    def test_status_accepts_strings(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)

        tracker.update("run-1", 0, STEPS[0], "running")

        assert tracker.get("run-1").steps[0].status == StepStatus.RUNNING

    def test_update_unknown_run_is_ignored(self):
        tracker = ProgressTracker()

        tracker.update("nope", 50, "x", StepStatus.RUNNING)

        assert tracker.get("nope") is None

    def test_persistence_round_trip(self, temp_workspace):
        progress_dir = temp_workspace / "progress"
        writer = ProgressTracker(progress_dir)
        writer.create("run-1", STEPS)
        writer.update("run-1", 33.33, STEPS[0], StepStatus.COMPLETED, cost=0.5)

        data = json.loads((progress_dir / "run-1.json").read_text(encoding="utf-8"))
        assert data["percentage"] == 33.33

        loaded = ProgressTracker(progress_dir).load("run-1")
        assert loaded.current_step == STEPS[0]
        assert loaded.steps[0].status == StepStatus.COMPLETED
        assert loaded.steps[0].cost == 0.5

    def test_load_missing_returns_none(self, temp_workspace):
        assert ProgressTracker(temp_workspace).load("run-x") is None
        assert ProgressTracker().load("run-x") is None

    def test_load_corrupt_file_warns(self, temp_workspace):
        (temp_workspace / "run-bad.json").write_text("{not json", encoding="utf-8")

        with pytest.warns(UserWarning, match="Failed to load progress"):
            assert ProgressTracker(temp_workspace).load("run-bad") is None

    def test_markdown(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)
        tracker.update("run-1", 0, STEPS[0], StepStatus.RUNNING)
        tracker.update("run-1", 50, STEPS[0], StepStatus.COMPLETED, cost=0.25)

        markdown = tracker.get_progress_markdown("run-1")

        assert "## 📊 Progress: `run-1`" in markdown
        assert "**Overall**: 50%" in markdown
        assert "✅ **Requirements Analysis** (completed) - $0.2500" in markdown
        assert "⏳ **Frontend Development** (pending)" in markdown

    def test_markdown_unknown_run(self):
        assert "No progress recorded" in ProgressTracker().get_progress_markdown("ghost")

    def test_to_dict_shape(self):
        tracker = ProgressTracker()
        tracker.create("run-1", STEPS)

        data = tracker.get("run-1").to_dict()

        assert set(data) == {"run_id", "percentage", "current_step", "started_at", "elapsed_seconds", "steps"}
        assert data["steps"][0] == {
            "name": STEPS[0], "status": "pending", "cost": None, "started_at": None, "ended_at": None,
        }
