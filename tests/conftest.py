"""
Shared pytest fixtures and configuration for all tests.
"""
import os
import subprocess
import sys
import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator

from ai_dev_team.core.backends import MockBackend
from ai_dev_team.core.completion import CompletionService
from ai_dev_team.core.cost_tracker import CostTracker
from ai_dev_team.core.models import RoleResult
from ai_dev_team.core.progress_tracker import ProgressTracker
from ai_dev_team.core.role_invoker import LLMRoleInvoker
from ai_dev_team.core.role_registry import RoleRegistry, create_static_registry
from ai_dev_team.core.roles import Role


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary workspace directory for testing."""
    temp_dir = tempfile.mkdtemp(prefix="ai_dev_team_test_")
    workspace = Path(temp_dir)
    (workspace / ".ai_dev_team").mkdir(parents=True, exist_ok=True)

    yield workspace

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def cost_tracker() -> CostTracker:
    return CostTracker()


@pytest.fixture
def static_registry() -> RoleRegistry:
    """Registry with the deterministic built-in roles."""
    return create_static_registry()


@pytest.fixture
def mock_backend() -> MockBackend:
    """Mock backend charging a fixed amount per call."""
    return MockBackend(cost_per_call=0.01)


@pytest.fixture
def completion_service(mock_backend, cost_tracker) -> CompletionService:
    return CompletionService(mock_backend, cost_tracker)


@pytest.fixture
def llm_invoker(completion_service) -> LLMRoleInvoker:
    return LLMRoleInvoker(completion_service)


@pytest.fixture
def progress_tracker(temp_workspace) -> ProgressTracker:
    return ProgressTracker(temp_workspace / ".ai_dev_team" / "progress")


class EchoRole(Role):
    """Returns its input unchanged, optionally charging a ledger."""

    def __init__(self, role_id: str = "echo", cost: float = 0.0, ledger: CostTracker = None):
        self.id = role_id
        self.name = role_id.title()
        self.cost = cost
        self.ledger = ledger
        self.calls = []

    def system_prompt(self) -> str:
        return f"You echo input as {self.name}"

    def execute(self, input, context):
        self.calls.append((input, dict(context)))
        if self.ledger is not None and self.cost:
            self.ledger.track("test", "echo-model", 1, 1, self.cost, self.id)
        return RoleResult(output=input, cost=self.cost)


class FailingRole(Role):
    """Raises the configured exception on execute."""

    def __init__(self, role_id: str = "broken", error: Exception = None):
        self.id = role_id
        self.name = role_id.title()
        self.error = error or RuntimeError("role exploded")

    def system_prompt(self) -> str:
        return "You fail"

    def execute(self, input, context):
        raise self.error


@pytest.fixture
def echo_role_factory():
    return EchoRole


@pytest.fixture
def failing_role_factory():
    return FailingRole


@pytest.fixture
def cli_env() -> dict:
    """Environment for CLI subprocesses: no API keys, so the mock backend is used."""
    env = {
        k: v for k, v in os.environ.items()
        if k not in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY") and not k.startswith("AI_DEV_TEAM_")
    }
    env.pop("LLM_MODEL", None)
    return env


@pytest.fixture
def run_cli(temp_workspace, cli_env):
    """Run `python -m ai_dev_team` inside the temporary workspace."""
    def run(*args):
        return subprocess.run(
            [sys.executable, "-m", "ai_dev_team", *args],
            cwd=temp_workspace,
            capture_output=True,
            text=True,
            env=cli_env,
        )
    return run
