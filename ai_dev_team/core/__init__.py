"""
Core modules of the AI development team.
Organized by responsibility: roles, execution, accounting, marketplace, build flow.
"""

# Exceptions
from .exceptions import (
    ValidationError, WorkflowError, SecurityError, RoleNotFoundError,
    BudgetExceededError, CompletionBackendError, StepFailedError,
    LicenseError, ParseFailureWarning,
)

# Enums
from .enums import StepStatus, BuildStatus, MessageRole

# Models
from .models import (
    WorkflowStep, RoleResult, CostEntry, CompletionMessage, CompletionOptions,
    TokenUsage, Completion, StreamChunk, ProgressStep, ProjectProgress,
    MarketplaceRoleMetadata, PurchaseResult, BuildOptions, BuildResult,
    AppOutput, GeneratedFile,
)

# Substitution and parsing
from .template_resolver import TemplateResolver, Resolved, Unresolved, substitute, find_placeholders
from .output_parsers import get_parser, parse_requirements

# Roles
from .roles import (
    Role, RoleDefinition, PromptRole, ProductManagerRole,
    FrontendDeveloperRole, BackendDeveloperRole, StripeExpertRole,
)
from .role_registry import (
    RoleRegistry, load_role_definitions, create_static_registry,
    create_llm_registry, create_default_registry,
)

# Completion and accounting
from .cost_tracker import CostTracker
from .progress_tracker import ProgressTracker
from .completion import CompletionBackend, CompletionService, CompletionStream
from .backends import (
    AnthropicBackend, OpenAIBackend, MockBackend, BackendRegistry,
    create_backend_registry,
)
from .stream_writer import StreamWriter
from .llm_stream_handler import LLMStreamHandler
from .role_invoker import LLMRoleInvoker, format_user_message
from .workflow_events import WorkflowEvent, EventLogger

# Execution
from .orchestrator import Orchestrator, OrchestratorConfig
from .marketplace import MarketplaceRegistry, PremiumRole
from .app_generator import AppGenerator, generate_files
from .app_builder import AppBuilder
from .control_plane import ControlPlane

# Loading and wiring
from .schema_loader import SchemaLoader, normalize_path
from .config_loader import AppConfig, ConfigLoader
from .team import DevTeam, create_team
