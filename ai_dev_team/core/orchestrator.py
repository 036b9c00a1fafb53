"""
Workflow orchestrator: runs an ordered list of steps against a role registry.
"""

import time
import uuid
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import jsonschema

from .cost_tracker import CostTracker
from .enums import StepStatus
from .exceptions import (
    BudgetExceededError, StepFailedError, ValidationError, WorkflowError,
)
from .models import RoleResult, WorkflowStep
from .progress_tracker import ProgressTracker
from .role_registry import RoleRegistry
from .roles import Role
from .schema_loader import SchemaLoader
from .stream_writer import StreamWriter
from .template_resolver import TemplateResolver, find_placeholders
from .workflow_events import EventLogger


StepHook = Callable[[WorkflowStep, RoleResult, Dict[str, Any]], None]


@dataclass
class OrchestratorConfig:
    max_cost: Optional[float] = None  # soft limit, checked between steps only
    verbose: bool = False
    strict_output_keys: bool = True


def new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


class Orchestrator:
    """
    Executes workflows step by step, fail-fast.

    Each step: check the budget, resolve the role, substitute {{key}}
    placeholders from the context built so far, execute the role, bind its
    output under the step's output key and advance progress. The first
    failure marks its step as error and propagates; later steps stay pending.

    The cost ledger is an explicit handle. Pass the same CostTracker to the
    CompletionService and here so the budget check sees what roles spent.
    """

    def __init__(
        self,
        registry: RoleRegistry,
        cost_tracker: Optional[CostTracker] = None,
        config: Optional[OrchestratorConfig] = None,
        progress: Optional[ProgressTracker] = None,
        events: Optional[EventLogger] = None,
        writer: Optional[StreamWriter] = None,
        on_step_complete: Optional[StepHook] = None,
    ):
        self.registry = registry
        self.cost_tracker = cost_tracker if cost_tracker is not None else CostTracker()
        self.config = config or OrchestratorConfig()
        self.progress = progress if progress is not None else ProgressTracker()
        self.events = events if events is not None else EventLogger()
        self.writer = writer or StreamWriter()
        self.on_step_complete = on_step_complete

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_workflow(self, steps: Sequence[WorkflowStep],
                          initial_keys: Iterable[str] = ()) -> None:
        """
        Check a workflow definition before running it.

        Raises:
            ValidationError: On an empty workflow, a missing role id or output
                key, or (in strict mode) an output key bound twice
        """
        if not steps:
            raise ValidationError("Workflow has no steps", field="steps")

        produced_by: Dict[str, int] = {}
        for index, step in enumerate(steps):
            if not step.role:
                raise ValidationError("Step has no role", field="role", context={"step": index})
            if not step.output_key:
                raise ValidationError("Step has no output key", field="output_key", context={"step": index})
            if step.output_key in produced_by:
                message = f"Output key '{step.output_key}' is bound by steps {produced_by[step.output_key]} and {index}"
                if self.config.strict_output_keys:
                    raise ValidationError(message, field="output_key", value=step.output_key)
                warnings.warn(message + "; the later value overwrites the earlier one")
            else:
                produced_by[step.output_key] = index

        available = set(initial_keys)
        for index, step in enumerate(steps):
            for key in find_placeholders(step.input):
                if key not in available and produced_by.get(key, -1) > index:
                    warnings.warn(
                        f"Step {index} ('{step.label}') references '{{{{{key}}}}}' "
                        f"which is only produced by a later step; it will stay unresolved"
                    )
            available.add(step.output_key)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def check_budget(self, step: Optional[WorkflowStep] = None) -> None:
        max_cost = self.config.max_cost
        if max_cost is None:
            return
        total = self.cost_tracker.get_total_cost()
        if total > max_cost:
            raise BudgetExceededError(
                total,
                max_cost,
                step=step.label if step else None,
                role_id=step.role if step else None,
            )

    def execute_step(self, step: WorkflowStep, context: Dict[str, Any],
                     run_id: Optional[str] = None) -> RoleResult:
        """
        Run one step and bind its output into `context`.

        Raises whatever the budget check, the registry or the role raises,
        after logging an error event for the step; progress bookkeeping is
        left to the caller.
        """
        return self._run_step(step, context, run_id, lambda: self.registry.get_role(step.role))

    def execute_role(self, role: Role, step: WorkflowStep, context: Dict[str, Any],
                     run_id: Optional[str] = None) -> RoleResult:
        """Like execute_step, for a role that is not in the registry"""
        return self._run_step(step, context, run_id, lambda: role)

    def _run_step(self, step: WorkflowStep, context: Dict[str, Any], run_id: Optional[str],
                  resolve_role: Callable[[], Role]) -> RoleResult:
        run_id = run_id or "adhoc"
        materialized: Any = step.input
        started = time.monotonic()
        try:
            self.check_budget(step)
            role = resolve_role()
            materialized = TemplateResolver(context).resolve(step.input)
            self.events.log_step(run_id, step.label, step.role, materialized, status="running")
            result = role.execute(materialized, context)
        except Exception as e:
            if isinstance(e, WorkflowError):
                e.attach_step(step.label)
            self.events.log_step(
                run_id, step.label, step.role, materialized, status="error",
                execution_time=time.monotonic() - started, error=str(e),
            )
            raise

        context[step.output_key] = result.output
        self.events.log_step(
            run_id, step.label, step.role, materialized, status="completed",
            cost=result.cost, execution_time=time.monotonic() - started,
        )
        return result

    def run_workflow(self, steps: Sequence[WorkflowStep], run_id: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute `steps` in order and return the final context.

        Args:
            steps: Ordered workflow steps
            run_id: Progress/event identifier; generated when omitted
            context: Optional empty dict to use as this run's context, so the
                caller can inspect the completed part after a failure

        Raises:
            ValidationError: For an invalid workflow or a non-empty context
            RoleNotFoundError, BudgetExceededError, CompletionBackendError:
                Propagated from the failing step, with its label attached
            StepFailedError: When role code raises anything else
        """
        if context is None:
            context = {}
        elif context:
            raise ValidationError(
                "Run context must start empty",
                field="context",
                context={"keys": ", ".join(sorted(context))}
            )

        steps = list(steps)
        self.validate_workflow(steps)

        run_id = run_id or new_run_id()
        if self.progress.get(run_id) is not None:
            raise ValidationError(f"Run id already in use: {run_id}", field="run_id", value=run_id)
        labels = [step.label for step in steps]
        self.progress.create(run_id, labels)

        total = len(steps)
        self._say(f"\n🚀 Starting workflow {run_id} ({total} steps)\n")

        for index, step in enumerate(steps):
            label = labels[index]
            before = round(100 * index / total, 2)
            after = round(100 * (index + 1) / total, 2)
            self.progress.update(run_id, before, label, StepStatus.RUNNING)
            self._say(f"🔄 {step.role}: Processing...")

            try:
                result = self.execute_step(step, context, run_id=run_id)
            except WorkflowError as e:
                self.progress.update(run_id, before, label, StepStatus.ERROR)
                self._say(f"❌ {step.role}: Failed\n   Error: {e}")
                raise
            except Exception as e:
                self.progress.update(run_id, before, label, StepStatus.ERROR)
                self._say(f"❌ {step.role}: Failed\n   Error: {e}")
                raise StepFailedError(e, step=label, role_id=step.role, completed_context=context) from e

            self.progress.update(run_id, after, label, StepStatus.COMPLETED, cost=result.cost)
            self._say(f"✅ {step.role}: Complete")
            if self.config.verbose:
                self._say(f"   Cost: ${result.cost:.4f}")
            if self.on_step_complete:
                self.on_step_complete(step, result, context)

        self._say("\n✅ Workflow complete!\n")
        self._say(self.cost_tracker.get_report())
        return context

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_cost_report(self) -> str:
        return self.cost_tracker.get_report()

    def get_total_cost(self) -> float:
        return self.cost_tracker.get_total_cost()

    def _say(self, line: str) -> None:
        if self.config.verbose:
            self.writer.writeline(line)


WORKFLOW_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["steps"],
    "properties": {
        "name": {"type": "string"},
        "steps": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["role"],
                "properties": {
                    "role": {"type": "string", "minLength": 1},
                    "input": {},
                    "output_key": {"type": "string", "minLength": 1},
                    "outputKey": {"type": "string", "minLength": 1},
                    "name": {"type": "string"},
                },
                "anyOf": [{"required": ["output_key"]}, {"required": ["outputKey"]}],
                "additionalProperties": False,
            },
        },
    },
}


def load_workflow(path: Path) -> List[WorkflowStep]:
    """
    Load workflow steps from a YAML or JSON file.

    Raises:
        ValidationError: If the file cannot be parsed or fails WORKFLOW_SCHEMA
    """
    data = SchemaLoader.load_document(Path(path))
    try:
        jsonschema.validate(instance=data, schema=WORKFLOW_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValidationError(
            f"Invalid workflow {path}: {e.message}",
            field=".".join(str(p) for p in e.absolute_path) or None,
        ) from None
    return [WorkflowStep.from_dict(step) for step in data["steps"]]
