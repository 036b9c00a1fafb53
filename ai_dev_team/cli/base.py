"""
Shared wiring for CLI commands.
"""

from pathlib import Path
from typing import Any, Dict

from ..core.config_loader import AppConfig, ConfigLoader, CONFIG_DIR
from ..core.team import DevTeam, create_team


def _load_config(args) -> AppConfig:
    """Resolve config from flags, environment and the workspace config file"""
    workspace = Path(args.workspace or ".").resolve()
    overrides: Dict[str, Any] = {
        "provider": getattr(args, 'provider', None),
        "model": getattr(args, 'model', None),
        "max_cost": getattr(args, 'max_cost', None),
        "stream_output": True if getattr(args, 'stream', False) else None,
        "verbose": True if getattr(args, 'verbose', False) else None,
        "user_id": getattr(args, 'user', None),
        "output_dir": getattr(args, 'output', None),
    }
    config = ConfigLoader(workspace).load(overrides)

    # The CLI keeps run state on disk so separate invocations can see it
    state_dir = workspace / CONFIG_DIR
    if config.progress_dir is None:
        config.progress_dir = state_dir / "progress"
    if config.license_file is None:
        config.license_file = state_dir / "licenses.yaml"
    return config


def _init_team(args) -> DevTeam:
    return create_team(_load_config(args))
