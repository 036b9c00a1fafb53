"""
Loading of YAML/JSON documents (role catalogs, workflows, config) with security checks.
"""

from pathlib import Path
from typing import Dict, Any, cast
import json
import yaml

from .exceptions import ValidationError, SecurityError


def normalize_path(base: Path, relative_path: str) -> Path:
    """
    Resolve `relative_path` under `base`, refusing anything that escapes it.

    Raises:
        SecurityError: If the path resolves outside `base`
    """
    base_resolved = base.resolve()
    try:
        target = (base / relative_path).resolve()
    except (ValueError, OSError) as e:
        raise SecurityError(f"Invalid path: '{relative_path}': {e}")

    if target != base_resolved and base_resolved not in target.parents:
        raise SecurityError(
            f"Path traversal detected: '{relative_path}' resolves outside base directory '{base}'"
        )
    return target


class SchemaLoader:
    """Loads YAML and JSON documents with size and path checks"""

    # Maximum file size (10MB)
    MAX_FILE_SIZE = 10 * 1024 * 1024

    @staticmethod
    def _check_file_size(file_path: Path) -> None:
        try:
            size = file_path.stat().st_size
        except OSError as e:
            raise SecurityError(f"Cannot access file '{file_path}': {e}")
        if size > SchemaLoader.MAX_FILE_SIZE:
            raise SecurityError(
                f"File '{file_path}' exceeds maximum size limit ({SchemaLoader.MAX_FILE_SIZE} bytes)"
            )

    @staticmethod
    def _open_checked(file_path: Path) -> Path:
        normalized_path = normalize_path(file_path.parent, file_path.name)
        SchemaLoader._check_file_size(normalized_path)
        return normalized_path

    @staticmethod
    def load_yaml(file_path: Path) -> Dict[str, Any]:
        """Load a YAML mapping"""
        normalized_path = SchemaLoader._open_checked(Path(file_path))
        try:
            with open(normalized_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValidationError(
                f"Invalid YAML syntax in {file_path}: {e}",
                field="yaml",
                context={"file": str(file_path)}
            )
        except OSError as e:
            raise ValidationError(
                f"Failed to load YAML from {file_path}: {e}",
                field="file",
                value=str(file_path)
            )
        if not isinstance(data, dict):
            raise ValidationError(
                f"YAML root must be a mapping in {file_path}",
                field="yaml",
                context={"file": str(file_path)}
            )
        return cast(Dict[str, Any], data)

    @staticmethod
    def load_json(file_path: Path) -> Dict[str, Any]:
        """Load a JSON object"""
        normalized_path = SchemaLoader._open_checked(Path(file_path))
        try:
            with open(normalized_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Invalid JSON syntax in {file_path}: {e}",
                field="json",
                context={"file": str(file_path)}
            )
        except OSError as e:
            raise ValidationError(
                f"Failed to load JSON from {file_path}: {e}",
                field="file",
                value=str(file_path)
            )
        if not isinstance(data, dict):
            raise ValidationError(
                f"JSON root must be an object in {file_path}",
                field="json",
                context={"file": str(file_path)}
            )
        return cast(Dict[str, Any], data)

    @staticmethod
    def load_document(file_path: Path) -> Dict[str, Any]:
        """Load a YAML or JSON document, chosen by suffix"""
        file_path = Path(file_path)
        if file_path.suffix in ['.yaml', '.yml']:
            return SchemaLoader.load_yaml(file_path)
        elif file_path.suffix == '.json':
            return SchemaLoader.load_json(file_path)
        else:
            raise ValidationError(
                f"Unsupported file format: {file_path.suffix}",
                field="format",
                value=file_path.suffix,
                context={"supported_formats": [".yaml", ".yml", ".json"]}
            )
