"""
Progress tracker for per-run percentage, current step and step statuses.
"""

import json
import warnings
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from .enums import StepStatus
from .models import ProgressStep, ProjectProgress


STATUS_ICONS = {
    StepStatus.PENDING: "⏳",
    StepStatus.RUNNING: "🔄",
    StepStatus.COMPLETED: "✅",
    StepStatus.ERROR: "❌",
}


class ProgressTracker:
    """
    Tracks progress records keyed by run id.

    Records are created once per run and mutated by `update`. Percentages are
    clamped to 0-100 and never move backwards. With a `progress_dir`, every
    change is also written to `<progress_dir>/<run_id>.json` so another
    process can read it back with `load`.
    """

    def __init__(self, progress_dir: Optional[Path] = None):
        self.progress_dir = Path(progress_dir) if progress_dir else None
        self._runs: Dict[str, ProjectProgress] = {}

    def create(self, run_id: str, step_names: List[str]) -> ProjectProgress:
        """Start tracking a run with all steps pending"""
        progress = ProjectProgress(
            run_id=run_id,
            steps=[ProgressStep(name=name) for name in step_names],
        )
        self._runs[run_id] = progress
        self._save_progress(progress)
        return progress

    def update(
        self,
        run_id: str,
        percentage: float,
        current_step: str,
        status: Optional[Union[StepStatus, str]] = None,
        cost: Optional[float] = None,
    ) -> None:
        """Update a run's percentage, current step and (optionally) that step's status/cost"""
        progress = self._runs.get(run_id)
        if not progress:
            return

        clamped = min(100.0, max(0.0, float(percentage)))
        progress.percentage = max(progress.percentage, clamped)
        progress.current_step = current_step

        step = progress.get_step(current_step)
        if step and status is not None:
            status = StepStatus(status)
            step.status = status
            if status == StepStatus.RUNNING:
                step.started_at = datetime.now()
            elif status in (StepStatus.COMPLETED, StepStatus.ERROR):
                step.ended_at = datetime.now()
            if cost is not None:
                step.cost = cost

            if status == StepStatus.COMPLETED:
                index = progress.steps.index(step)
                if index < len(progress.steps) - 1:
                    progress.steps[index + 1].status = StepStatus.PENDING

        self._save_progress(progress)

    def get(self, run_id: str) -> Optional[ProjectProgress]:
        return self._runs.get(run_id)

    def list_runs(self) -> List[str]:
        return list(self._runs.keys())

    def get_progress_markdown(self, run_id: str) -> str:
        """Generate markdown representation of a run's progress"""
        progress = self.get(run_id) or self.load(run_id)
        if not progress:
            return f"## Progress\n\nNo progress recorded for run `{run_id}`"

        lines = [f"## 📊 Progress: `{progress.run_id}`", ""]

        pct = int(progress.percentage)
        filled = pct // 5
        bar = "█" * filled + "░" * (20 - filled)
        lines.append(f"**Overall**: {pct}% `{bar}`")
        lines.append(f"**Current step**: {progress.current_step}")
        lines.append(f"**Elapsed**: {progress.elapsed_seconds:.1f}s")
        lines.append("")

        for step in progress.steps:
            line = f"{STATUS_ICONS.get(step.status, '❓')} **{step.name}** ({step.status.value})"
            if step.cost is not None:
                line += f" - ${step.cost:.4f}"
            lines.append(line)
            if step.started_at and step.ended_at:
                duration = (step.ended_at - step.started_at).total_seconds()
                lines.append(f"   - took {duration:.1f}s")

        return "\n".join(lines)

    def _progress_file(self, run_id: str) -> Optional[Path]:
        if not self.progress_dir:
            return None
        return self.progress_dir / f"{run_id}.json"

    def _save_progress(self, progress: ProjectProgress) -> None:
        """Save progress to file"""
        progress_file = self._progress_file(progress.run_id)
        if not progress_file:
            return

        try:
            progress_file.parent.mkdir(parents=True, exist_ok=True)
            with open(progress_file, 'w', encoding='utf-8') as f:
                json.dump(progress.to_dict(), f, indent=2, ensure_ascii=False, default=str)
        except Exception as e:
            # Don't fail the run if progress saving fails
            warnings.warn(f"Failed to save progress: {e}")

    def load(self, run_id: str) -> Optional[ProjectProgress]:
        """Load a persisted progress record"""
        progress_file = self._progress_file(run_id)
        if not progress_file or not progress_file.exists():
            return None

        try:
            with open(progress_file, 'r', encoding='utf-8') as f:
                return ProjectProgress.from_dict(json.load(f))
        except Exception as e:
            warnings.warn(f"Failed to load progress: {e}")
            return None
