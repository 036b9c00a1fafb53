"""
Enumeration classes for the orchestrator.
"""

from enum import Enum


class StepStatus(Enum):
    """Status of a tracked progress step"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class BuildStatus(Enum):
    """Outcome of a build request"""
    SUCCESS = "success"
    MARKETPLACE_SUGGESTION = "marketplace_suggestion"
    ERROR = "error"


class MessageRole(Enum):
    """Author of a message in a completion request"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
