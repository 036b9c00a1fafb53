"""
Wiring: assemble a working team (backends, ledger, roles, orchestrator,
marketplace, build flow) from an AppConfig.
"""

from dataclasses import dataclass
from typing import Optional

from .app_builder import AppBuilder
from .app_generator import AppGenerator
from .backends import create_backend_registry
from .completion import CompletionService
from .config_loader import AppConfig
from .control_plane import ControlPlane
from .cost_tracker import CostTracker
from .llm_stream_handler import LLMStreamHandler
from .marketplace import MarketplaceRegistry
from .orchestrator import Orchestrator, OrchestratorConfig
from .progress_tracker import ProgressTracker
from .role_invoker import LLMRoleInvoker
from .role_registry import RoleRegistry, create_llm_registry
from .stream_writer import StreamWriter
from .workflow_events import EventLogger


@dataclass
class DevTeam:
    config: AppConfig
    cost_tracker: CostTracker
    service: CompletionService
    invoker: LLMRoleInvoker
    registry: RoleRegistry
    orchestrator: Orchestrator
    marketplace: MarketplaceRegistry
    builder: AppBuilder

    def control_plane(self) -> ControlPlane:
        return ControlPlane(self.builder)


def create_team(config: AppConfig, writer: Optional[StreamWriter] = None) -> DevTeam:
    """
    Build every component from `config`, sharing one cost ledger between the
    completion service and the orchestrator.
    """
    writer = writer or StreamWriter()
    backends = create_backend_registry(
        provider=config.provider,
        model=config.model,
        anthropic_api_key=config.anthropic_api_key,
        openai_api_key=config.openai_api_key,
        openai_base_url=config.openai_base_url,
    )
    cost_tracker = CostTracker()
    service = CompletionService(backends.get(), cost_tracker)
    invoker = LLMRoleInvoker(
        service,
        stream=config.stream_output,
        stream_handler=LLMStreamHandler(writer, echo=config.verbose),
    )
    registry = create_llm_registry(invoker)

    orchestrator = Orchestrator(
        registry,
        cost_tracker=cost_tracker,
        config=OrchestratorConfig(max_cost=config.max_cost, verbose=config.verbose),
        progress=ProgressTracker(config.progress_dir),
        events=EventLogger(config.event_log),
        writer=writer,
    )
    marketplace = MarketplaceRegistry(invoker=invoker, license_file=config.license_file)
    builder = AppBuilder(
        orchestrator,
        marketplace,
        AppGenerator(config.output_dir),
        user_id=config.user_id,
        invoker=invoker,
    )
    return DevTeam(
        config=config,
        cost_tracker=cost_tracker,
        service=service,
        invoker=invoker,
        registry=registry,
        orchestrator=orchestrator,
        marketplace=marketplace,
        builder=builder,
    )
