"""
Role registry: maps role ids to executable roles.
Also loads declarative role catalogs (YAML) into RoleDefinitions.
"""

from pathlib import Path
from typing import Dict, List, Optional, Any, Union, TYPE_CHECKING

import jsonschema

from .exceptions import ValidationError, RoleNotFoundError
from .roles import (
    Role, RoleDefinition, PromptRole,
    ProductManagerRole, FrontendDeveloperRole, BackendDeveloperRole,
)
from .output_parsers import PARSERS
from .schema_loader import SchemaLoader

if TYPE_CHECKING:
    from .role_invoker import LLMRoleInvoker


BUNDLED_CATALOG = Path(__file__).resolve().parent.parent / "templates" / "roles.yaml"

ROLE_CATALOG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["roles"],
    "properties": {
        "schema_version": {"type": "string"},
        "roles": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "name", "system_prompt"],
                "properties": {
                    "id": {"type": "string", "pattern": r"^[A-Za-z0-9_-]+$"},
                    "name": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "system_prompt": {"type": "string", "minLength": 1},
                    "temperature": {"type": "number", "minimum": 0, "maximum": 2},
                    "max_tokens": {"type": "integer", "minimum": 1},
                    "parser": {"type": "string", "enum": sorted(PARSERS)},
                    "context_keys": {"type": "array", "items": {"type": "string"}},
                    "next_steps": {"type": "array", "items": {"type": "string"}},
                    "dependencies": {"type": "array", "items": {"type": "string"}},
                },
                "additionalProperties": False,
            },
        },
    },
}


class RoleRegistry:
    """
    Mapping from role id to Role.

    `register` inserts or replaces (last write wins). There is no removal.
    A single writer is assumed.
    """

    def __init__(self):
        self._roles: Dict[str, Role] = {}

    def register(self, role_id: str, role: Role) -> None:
        self._roles[role_id] = role

    def get_role(self, role_id: str) -> Role:
        try:
            return self._roles[role_id]
        except KeyError:
            raise RoleNotFoundError(role_id, available=self.list_roles()) from None

    def has_role(self, role_id: str) -> bool:
        return role_id in self._roles

    def list_roles(self) -> List[str]:
        return sorted(self._roles)

    def __contains__(self, role_id: object) -> bool:
        return role_id in self._roles

    def __len__(self) -> int:
        return len(self._roles)


def load_role_definitions(source: Union[Path, str, Dict[str, Any], None] = None) -> List[RoleDefinition]:
    """
    Load and validate a role catalog.

    Args:
        source: Path to a YAML/JSON catalog, an already-parsed mapping, or
            None for the bundled catalog

    Raises:
        ValidationError: If the catalog does not match ROLE_CATALOG_SCHEMA
            or defines the same role id twice
    """
    if source is None:
        source = BUNDLED_CATALOG
    if isinstance(source, (str, Path)):
        data = SchemaLoader.load_document(Path(source))
        origin = str(source)
    else:
        data = source
        origin = "<mapping>"

    try:
        jsonschema.validate(data, ROLE_CATALOG_SCHEMA)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) or "roles"
        raise ValidationError(
            f"Invalid role catalog: {e.message}",
            field=path,
            context={"source": origin}
        )

    definitions: List[RoleDefinition] = []
    seen = set()
    for role_data in data["roles"]:
        role_id = role_data["id"]
        if role_id in seen:
            raise ValidationError(
                f"Duplicate role id in catalog: {role_id}",
                field="id",
                value=role_id,
                context={"source": origin}
            )
        seen.add(role_id)
        definitions.append(RoleDefinition.from_dict(role_data))
    return definitions


def create_static_registry() -> RoleRegistry:
    """Registry with the deterministic built-in roles"""
    registry = RoleRegistry()
    for role in (ProductManagerRole(), FrontendDeveloperRole(), BackendDeveloperRole()):
        registry.register(role.id, role)
    return registry


def create_llm_registry(invoker: 'LLMRoleInvoker',
                        catalog: Union[Path, str, Dict[str, Any], None] = None) -> RoleRegistry:
    """Registry with one PromptRole per catalog entry, all bound to `invoker`"""
    registry = RoleRegistry()
    for definition in load_role_definitions(catalog):
        registry.register(definition.id, PromptRole(definition, invoker=invoker))
    return registry


def create_default_registry(invoker: Optional['LLMRoleInvoker'] = None) -> RoleRegistry:
    if invoker is None:
        return create_static_registry()
    return create_llm_registry(invoker)
