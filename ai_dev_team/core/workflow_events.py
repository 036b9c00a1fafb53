"""
Run event log for observability.
Records one event per step transition.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any
from pathlib import Path
import hashlib
import json
import warnings
import yaml


@dataclass
class WorkflowEvent:
    """A single step transition within a run"""
    run_id: str
    step: Optional[str] = None
    role: Optional[str] = None
    input_hash: Optional[str] = None
    status: str = "running"  # "running" | "completed" | "error"
    timestamp: datetime = field(default_factory=datetime.now)
    cost: float = 0.0
    execution_time: float = 0.0
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "run_id": self.run_id,
            "step": self.step,
            "role": self.role,
            "input_hash": self.input_hash,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "cost": self.cost,
            "execution_time": self.execution_time,
            "error": self.error,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkflowEvent':
        """Create from dictionary"""
        return cls(
            run_id=data["run_id"],
            step=data.get("step"),
            role=data.get("role"),
            input_hash=data.get("input_hash"),
            status=data.get("status", "running"),
            timestamp=datetime.fromisoformat(data["timestamp"]) if data.get("timestamp") else datetime.now(),
            cost=data.get("cost", 0.0),
            execution_time=data.get("execution_time", 0.0),
            error=data.get("error"),
            metadata=data.get("metadata", {}),
        )

    @staticmethod
    def hash_input(input_data: Any) -> str:
        """Stable short hash of a step input"""
        input_str = json.dumps(input_data, sort_keys=True, default=str)
        return hashlib.sha256(input_str.encode()).hexdigest()[:16]


class EventLogger:
    """
    Records, queries and exports run events.

    With a `log_file` (JSON, or YAML by suffix) events are also appended to
    disk; persistence failures only warn.
    """

    def __init__(self, log_file: Optional[Path] = None):
        self.events: List[WorkflowEvent] = []
        self.log_file = Path(log_file) if log_file else None
        if self.log_file and self.log_file.exists():
            self._load_from_file()

    def log_event(self, event: WorkflowEvent) -> None:
        self.events.append(event)
        if self.log_file:
            self._append_to_file(event)

    def log_step(
        self,
        run_id: str,
        step: str,
        role: str,
        input_data: Any = None,
        status: str = "running",
        cost: float = 0.0,
        execution_time: float = 0.0,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> WorkflowEvent:
        """
        Log a step transition.

        Args:
            run_id: Run identifier
            step: Step label
            role: Role id executing the step
            input_data: Materialized step input (stored as a hash)
            status: "running", "completed" or "error"
            cost: Cost attributed to the step
            execution_time: Seconds spent in the step
            error: Error message if failed
            metadata: Additional metadata

        Returns:
            Created WorkflowEvent
        """
        event = WorkflowEvent(
            run_id=run_id,
            step=step,
            role=role,
            input_hash=WorkflowEvent.hash_input(input_data) if input_data is not None else None,
            status=status,
            cost=cost,
            execution_time=execution_time,
            error=error,
            metadata=metadata or {},
        )
        self.log_event(event)
        return event

    def get_events(
        self,
        run_id: Optional[str] = None,
        step: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[WorkflowEvent]:
        filtered = self.events
        if run_id:
            filtered = [e for e in filtered if e.run_id == run_id]
        if step:
            filtered = [e for e in filtered if e.step == step]
        if role:
            filtered = [e for e in filtered if e.role == role]
        if status:
            filtered = [e for e in filtered if e.status == status]
        return filtered

    def export_events(
        self,
        output_file: Path,
        format: str = "json",
        filters: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Export events to file.

        Args:
            output_file: Output file path
            format: "json" or "yaml"
            filters: Optional keyword filters for get_events
        """
        events_to_export = self.get_events(**filters) if filters else self.events
        events_dict = [e.to_dict() for e in events_to_export]

        output_file.parent.mkdir(parents=True, exist_ok=True)
        if format == "json":
            with output_file.open('w', encoding='utf-8') as f:
                json.dump(events_dict, f, indent=2, ensure_ascii=False, default=str)
        elif format == "yaml":
            with output_file.open('w', encoding='utf-8') as f:
                yaml.dump(events_dict, f, default_flow_style=False, allow_unicode=True)
        else:
            raise ValueError(f"Unsupported format: {format}")

    def _is_yaml(self) -> bool:
        return bool(self.log_file) and self.log_file.suffix in ['.yaml', '.yml']

    def _read_file(self) -> List[Dict[str, Any]]:
        with self.log_file.open('r', encoding='utf-8') as f:
            data = yaml.safe_load(f) if self._is_yaml() else json.load(f)
        return data if isinstance(data, list) else []

    def _load_from_file(self) -> None:
        try:
            self.events = [WorkflowEvent.from_dict(e) for e in self._read_file()]
        except Exception as e:
            warnings.warn(f"Failed to load events from {self.log_file}: {e}")

    def _append_to_file(self, event: WorkflowEvent) -> None:
        try:
            existing = self._read_file() if self.log_file.exists() else []
            existing.append(event.to_dict())
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open('w', encoding='utf-8') as f:
                if self._is_yaml():
                    yaml.dump(existing, f, default_flow_style=False, allow_unicode=True)
                else:
                    json.dump(existing, f, indent=2, ensure_ascii=False, default=str)
        except Exception as e:
            warnings.warn(f"Failed to write event to {self.log_file}: {e}")
