"""
Configuration loading.

Priority: explicit overrides > environment variables > config file > defaults.
The config file lives at `<workspace>/.ai_dev_team/config.yaml`.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .exceptions import ValidationError
from .schema_loader import SchemaLoader


CONFIG_DIR = ".ai_dev_team"
CONFIG_FILE = "config.yaml"
PROVIDERS = ["mock", "anthropic", "openai"]

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "provider": {"type": "string", "enum": PROVIDERS},
        "model": {"type": ["string", "null"]},
        "max_cost": {"type": ["number", "null"], "minimum": 0},
        "stream_output": {"type": "boolean"},
        "verbose": {"type": "boolean"},
        "temperature": {"type": "number", "minimum": 0, "maximum": 2},
        "max_tokens": {"type": "integer", "minimum": 1},
        "output_dir": {"type": "string"},
        "user_id": {"type": "string", "minLength": 1},
        "use_marketplace": {"type": "boolean"},
        "progress_dir": {"type": ["string", "null"]},
        "event_log": {"type": ["string", "null"]},
        "license_file": {"type": ["string", "null"]},
    },
}


@dataclass
class AppConfig:
    workspace: Path
    provider: str = "mock"
    model: Optional[str] = None
    max_cost: Optional[float] = None
    stream_output: bool = False
    verbose: bool = False
    temperature: float = 0.7
    max_tokens: int = 4096
    output_dir: Optional[Path] = None
    user_id: str = "current-user"
    use_marketplace: bool = True
    progress_dir: Optional[Path] = None
    event_log: Optional[Path] = None
    license_file: Optional[Path] = None
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view; API keys are reported as set/unset only"""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name.endswith("_api_key"):
                data[f.name] = "set" if value else None
            elif isinstance(value, Path):
                data[f.name] = str(value)
            else:
                data[f.name] = value
        return data


class ConfigLoader:
    """Builds an AppConfig from the workspace config file and the environment"""

    def __init__(self, workspace_path: Path, environ: Optional[Dict[str, str]] = None):
        self.workspace_path = Path(workspace_path)
        self.config_file = self.workspace_path / CONFIG_DIR / CONFIG_FILE
        self.environ = dict(os.environ) if environ is None else environ

    def load_file(self) -> Dict[str, Any]:
        """
        Read and validate the config file; an absent file is an empty config.

        Raises:
            ValidationError: If the file is malformed or fails the schema
        """
        if not self.config_file.exists():
            return {}
        data = SchemaLoader.load_yaml(self.config_file)
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            field = ".".join(str(p) for p in e.absolute_path) or None
            raise ValidationError(
                f"Invalid config file {self.config_file}: {e.message}",
                field=field,
            ) from None
        return data

    def load_env(self) -> Dict[str, Any]:
        env = self.environ
        data: Dict[str, Any] = {}
        if env.get("AI_DEV_TEAM_PROVIDER"):
            provider = env["AI_DEV_TEAM_PROVIDER"].lower()
            if provider not in PROVIDERS:
                raise ValidationError(
                    f"Unknown provider '{provider}' in AI_DEV_TEAM_PROVIDER",
                    field="provider",
                    value=provider,
                )
            data["provider"] = provider
        if env.get("LLM_MODEL"):
            data["model"] = env["LLM_MODEL"]
        if env.get("AI_DEV_TEAM_MAX_COST"):
            try:
                data["max_cost"] = float(env["AI_DEV_TEAM_MAX_COST"])
            except ValueError:
                raise ValidationError(
                    "AI_DEV_TEAM_MAX_COST must be a number",
                    field="max_cost",
                    value=env["AI_DEV_TEAM_MAX_COST"],
                ) from None
        return data

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
        """
        Resolve the effective configuration.

        Args:
            overrides: Values from the command line; None entries are ignored

        Returns:
            AppConfig with paths made absolute under the workspace
        """
        merged: Dict[str, Any] = {}
        merged.update(self.load_file())
        merged.update(self.load_env())
        merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

        anthropic_key = self.environ.get("ANTHROPIC_API_KEY") or None
        openai_key = self.environ.get("OPENAI_API_KEY") or None
        if "provider" not in merged:
            merged["provider"] = "anthropic" if anthropic_key else "openai" if openai_key else "mock"

        config = AppConfig(
            workspace=self.workspace_path,
            anthropic_api_key=anthropic_key,
            openai_api_key=openai_key,
            openai_base_url=self.environ.get("OPENAI_BASE_URL") or None,
        )
        for key, value in merged.items():
            if key in ("output_dir", "progress_dir", "event_log", "license_file"):
                value = self._workspace_path(value)
            setattr(config, key, value)

        if config.output_dir is None:
            config.output_dir = self.workspace_path / "output"
        return config

    def _workspace_path(self, value: Any) -> Optional[Path]:
        if value is None:
            return None
        path = Path(value)
        return path if path.is_absolute() else self.workspace_path / path
