"""
AI Development Team

Role-based workflow orchestration: a product manager, developers and
premium marketplace roles turn an app description into a project.
"""

from .core import (
    AppBuilder,
    AppConfig,
    BuildOptions,
    BuildResult,
    BuildStatus,
    ConfigLoader,
    ControlPlane,
    CostTracker,
    MarketplaceRegistry,
    Orchestrator,
    OrchestratorConfig,
    ProgressTracker,
    Role,
    RoleRegistry,
    ValidationError,
    WorkflowError,
    WorkflowStep,
    create_team,
)

__version__ = "0.1.0"
__all__ = [
    "AppBuilder",
    "AppConfig",
    "BuildOptions",
    "BuildResult",
    "BuildStatus",
    "ConfigLoader",
    "ControlPlane",
    "CostTracker",
    "MarketplaceRegistry",
    "Orchestrator",
    "OrchestratorConfig",
    "ProgressTracker",
    "Role",
    "RoleRegistry",
    "ValidationError",
    "WorkflowError",
    "WorkflowStep",
    "create_team",
]
