"""
Data model classes for the orchestrator.
All data models in one module.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any, Tuple

from .enums import StepStatus, BuildStatus, MessageRole


# ============================================================================
# Workflow Models
# ============================================================================

@dataclass(frozen=True)
class WorkflowStep:
    """
    One unit of a workflow: run `role` on `input`, bind the output to `output_key`.

    `input` may be text or an arbitrarily nested structure whose strings can
    carry {{key}} placeholders.
    """
    role: str
    input: Any
    output_key: str
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.output_key

    def to_dict(self) -> Dict[str, Any]:
        data = {"role": self.role, "input": self.input, "output_key": self.output_key}
        if self.name:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkflowStep':
        return cls(
            role=data["role"],
            input=data.get("input", ""),
            output_key=data.get("output_key") or data.get("outputKey"),
            name=data.get("name"),
        )


@dataclass
class RoleResult:
    """Result of one role execution"""
    output: Any
    next_steps: List[str] = field(default_factory=list)  # advisory only
    dependencies: List[str] = field(default_factory=list)  # advisory only
    cost: float = 0.0
    raw: Optional[str] = None


# ============================================================================
# Cost Models
# ============================================================================

@dataclass(frozen=True)
class CostEntry:
    """A single completion charge in the cost ledger"""
    provider: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    cost: float
    purpose: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "cost": self.cost,
            "purpose": self.purpose,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================================
# Completion Models
# ============================================================================

@dataclass(frozen=True)
class CompletionMessage:
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class CompletionOptions:
    temperature: float = 0.7
    max_tokens: int = 4096
    model: Optional[str] = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class Completion:
    """A whole (non-streamed) completion"""
    text: str
    usage: TokenUsage
    model: str
    cost: float = 0.0


@dataclass(frozen=True)
class StreamChunk:
    """
    A piece of a streamed completion.

    The final chunk has `is_complete=True` and may carry the usage the
    backend reported for the whole stream.
    """
    text: str
    is_complete: bool = False
    usage: Optional[TokenUsage] = None


# ============================================================================
# Progress Models
# ============================================================================

@dataclass
class ProgressStep:
    """Status of one named step within a tracked run"""
    name: str
    status: StepStatus = StepStatus.PENDING
    cost: Optional[float] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "name": self.name,
            "status": self.status.value,
            "cost": self.cost,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProgressStep':
        """Create from dictionary"""
        return cls(
            name=data["name"],
            status=StepStatus(data.get("status", "pending")),
            cost=data.get("cost"),
            started_at=datetime.fromisoformat(data["started_at"]) if data.get("started_at") else None,
            ended_at=datetime.fromisoformat(data["ended_at"]) if data.get("ended_at") else None,
        )


@dataclass
class ProjectProgress:
    """Progress record for one run"""
    run_id: str
    percentage: float = 0.0  # 0 - 100
    current_step: str = "Starting"
    started_at: datetime = field(default_factory=datetime.now)
    steps: List[ProgressStep] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def get_step(self, name: str) -> Optional[ProgressStep]:
        return next((s for s in self.steps if s.name == name), None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "run_id": self.run_id,
            "percentage": self.percentage,
            "current_step": self.current_step,
            "started_at": self.started_at.isoformat(),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "steps": [step.to_dict() for step in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectProgress':
        """Create from dictionary"""
        return cls(
            run_id=data["run_id"],
            percentage=data.get("percentage", 0.0),
            current_step=data.get("current_step", "Starting"),
            started_at=datetime.fromisoformat(data["started_at"]) if data.get("started_at") else datetime.now(),
            steps=[ProgressStep.from_dict(s) for s in data.get("steps", [])],
        )


# ============================================================================
# Marketplace Models
# ============================================================================

@dataclass(frozen=True)
class MarketplaceRoleMetadata:
    """Catalog entry for a premium role"""
    id: str
    name: str
    description: str
    price: float
    capabilities: Tuple[str, ...] = ()
    author: str = ""
    version: str = "1.0.0"
    rating: float = 0.0
    downloads: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "capabilities": list(self.capabilities),
            "author": self.author,
            "version": self.version,
            "rating": self.rating,
            "downloads": self.downloads,
        }


@dataclass(frozen=True)
class PurchaseResult:
    success: bool
    message: str


# ============================================================================
# Build Models
# ============================================================================

@dataclass(frozen=True)
class BuildOptions:
    use_marketplace: bool = True
    streaming: bool = False


@dataclass
class BuildResult:
    """Outcome of a build request"""
    status: BuildStatus
    run_id: Optional[str] = None
    summary: Optional[str] = None
    deployment_location: Optional[str] = None
    total_cost: Optional[float] = None
    message: Optional[str] = None
    suggestion: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value}
        for key in ("run_id", "summary", "deployment_location", "total_cost", "message", "suggestion"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class AppOutput:
    """Role outputs handed to the app generator"""
    name: str
    requirements: Any
    frontend_code: Any
    backend_code: Any
    payment_code: Optional[Any] = None


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str
