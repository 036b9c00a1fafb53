"""
Exception classes for the AI development team orchestrator.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Any


@dataclass
class ValidationError(Exception):
    """
    Validation error with context information.

    Raised for malformed role catalogs, configuration files, workflow
    definitions and tool arguments.
    """
    message: str
    field: Optional[str] = None
    value: Any = None
    context: Optional[Dict[str, Any]] = None

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.field = field
        self.value = value
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context"""
        parts = [self.message]
        if self.field:
            parts.append(f"Field: {self.field}")
        if self.value is not None:
            parts.append(f"Value: {repr(self.value)}")
        if self.context:
            ctx_parts = [f"{k}={v}" for k, v in self.context.items()]
            parts.append(f"Context: {', '.join(ctx_parts)}")
        return " | ".join(parts)

    def __str__(self) -> str:
        return self._format_message()


@dataclass
class WorkflowError(Exception):
    """
    Run failure with step and role context.

    Base class for every error that aborts a workflow run.
    """
    message: str
    step: Optional[str] = None
    role_id: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    def __init__(self, message: str, step: Optional[str] = None,
                 role_id: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.step = step
        self.role_id = role_id
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context"""
        parts = [self.message]
        if self.step:
            parts.append(f"Step: {self.step}")
        if self.role_id:
            parts.append(f"Role: {self.role_id}")
        if self.context:
            ctx_parts = [f"{k}={v}" for k, v in self.context.items()]
            parts.append(f"Context: {', '.join(ctx_parts)}")
        return " | ".join(parts)

    def __str__(self) -> str:
        return self._format_message()

    def attach_step(self, step: str) -> None:
        """Name the failing step when the raiser did not know it"""
        if not self.step:
            self.step = step
            self.args = (self._format_message(),)


class RoleNotFoundError(WorkflowError):
    """A step references a role id that is not registered"""

    def __init__(self, role_id: str, available: Optional[list] = None):
        context = {"available": ", ".join(available)} if available else None
        super().__init__(f"Role not found: {role_id}", role_id=role_id, context=context)


class BudgetExceededError(WorkflowError):
    """Accumulated cost is above the configured maximum when a step is about to start"""

    def __init__(self, total_cost: float, max_cost: float, step: Optional[str] = None,
                 role_id: Optional[str] = None):
        self.total_cost = total_cost
        self.max_cost = max_cost
        super().__init__(
            f"Cost limit exceeded: ${total_cost:.4f} > ${max_cost}",
            step=step,
            role_id=role_id,
        )


class CompletionBackendError(WorkflowError):
    """The completion backend failed while serving a request"""

    def __init__(self, message: str, provider: Optional[str] = None,
                 role_id: Optional[str] = None):
        self.provider = provider
        super().__init__(
            message,
            role_id=role_id,
            context={"provider": provider} if provider else None,
        )


class StepFailedError(WorkflowError):
    """
    Foreign exception raised by role code during a step.

    The original exception is kept as ``cause`` (and chained). The context
    produced by the steps that completed before the failure is available
    as ``completed_context``.
    """

    def __init__(self, cause: BaseException, step: Optional[str] = None,
                 role_id: Optional[str] = None,
                 completed_context: Optional[Dict[str, Any]] = None):
        self.cause = cause
        self.completed_context = dict(completed_context or {})
        super().__init__(
            f"Step failed: {type(cause).__name__}: {cause}",
            step=step,
            role_id=role_id,
        )


class LicenseError(Exception):
    """License key rejected for a marketplace role"""

    def __init__(self, role_id: str, message: str = "Invalid license key"):
        self.role_id = role_id
        self.message = message
        super().__init__(f"{message} for role '{role_id}'")


class SecurityError(Exception):
    """Security-related error for path validation"""
    pass


class ParseFailureWarning(UserWarning):
    """Role output could not be parsed into its structured form; a fallback was used"""
    pass
