"""
Tool-call surface over the build flow.

Exposes build_app, check_progress and purchase_role as named tools with
JSON-schema inputs, for agents and other programmatic callers.
"""

from typing import Any, Callable, Dict, List

import jsonschema

from .app_builder import AppBuilder
from .enums import BuildStatus
from .exceptions import ValidationError
from .models import BuildOptions


TOOLS: List[Dict[str, Any]] = [
    {
        "name": "build_app",
        "description": "Build a complete application from a description using AI development team",
        "input_schema": {
            "type": "object",
            "properties": {
                "description": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Natural language description of the app to build",
                },
                "use_marketplace": {
                    "type": "boolean",
                    "description": "Whether to suggest premium marketplace roles when applicable",
                    "default": True,
                },
            },
            "required": ["description"],
            "additionalProperties": False,
        },
    },
    {
        "name": "check_progress",
        "description": "Check the progress of an ongoing app build",
        "input_schema": {
            "type": "object",
            "properties": {
                "run_id": {
                    "type": "string",
                    "description": "The run id returned from build_app",
                },
            },
            "required": ["run_id"],
            "additionalProperties": False,
        },
    },
    {
        "name": "purchase_role",
        "description": "Purchase a premium role from the marketplace",
        "input_schema": {
            "type": "object",
            "properties": {
                "role_id": {
                    "type": "string",
                    "description": "The ID of the role to purchase",
                },
                "license_key": {
                    "type": "string",
                    "description": "Optional license key to redeem instead of buying",
                },
            },
            "required": ["role_id"],
            "additionalProperties": False,
        },
    },
]


class ControlPlane:
    """Dispatches tool calls to an AppBuilder and renders text responses"""

    def __init__(self, builder: AppBuilder):
        self.builder = builder
        self._schemas = {tool["name"]: tool["input_schema"] for tool in TOOLS}
        self._handlers: Dict[str, Callable[[Dict[str, Any]], str]] = {
            "build_app": self._build_app,
            "check_progress": self._check_progress,
            "purchase_role": self._purchase_role,
        }

    def list_tools(self) -> List[Dict[str, Any]]:
        return [dict(tool) for tool in TOOLS]

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> str:
        """
        Validate `arguments` and run the named tool.

        Raises:
            ValidationError: Unknown tool or arguments that fail its schema
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ValidationError(
                f"Unknown tool: {name}",
                field="name",
                value=name,
                context={"available": ", ".join(sorted(self._handlers))},
            )
        try:
            jsonschema.validate(instance=arguments, schema=self._schemas[name])
        except jsonschema.ValidationError as e:
            raise ValidationError(
                f"Invalid arguments for {name}: {e.message}",
                field=".".join(str(p) for p in e.absolute_path) or None,
            ) from None
        return handler(arguments)

    def _build_app(self, arguments: Dict[str, Any]) -> str:
        options = BuildOptions(
            use_marketplace=arguments.get("use_marketplace", True),
            streaming=True,
        )
        result = self.builder.build_app(arguments["description"], options)

        if result.status == BuildStatus.MARKETPLACE_SUGGESTION:
            return result.message + "\n\nUse the purchase_role tool to add this capability."
        if result.status == BuildStatus.ERROR:
            return f"Error: {result.message}"
        return (
            f"✅ App successfully built!\n\n{result.summary}\n\n"
            f"🚀 Output: {result.deployment_location}\n"
            f"💰 Total cost: ${result.total_cost:.2f}\n"
            f"Run: {result.run_id}"
        )

    def _check_progress(self, arguments: Dict[str, Any]) -> str:
        progress = self.builder.get_progress(arguments["run_id"])
        if progress is None:
            return f"Error: Unknown run: {arguments['run_id']}"
        return (
            f"Progress: {progress['percentage']:g}%\n"
            f"Current step: {progress['current_step']}\n"
            f"Elapsed: {round(progress['elapsed_seconds'])}s"
        )

    def _purchase_role(self, arguments: Dict[str, Any]) -> str:
        result = self.builder.purchase_role(
            arguments["role_id"],
            license_key=arguments.get("license_key"),
        )
        return result.message
