"""
Template resolver for {{key}} placeholders in step inputs.
Handles placeholder substitution only.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union


PLACEHOLDER_PATTERN = re.compile(r'\{\{(\w+)\}\}')


@dataclass(frozen=True)
class Resolved:
    """Placeholder whose key was present in the context"""
    key: str
    text: str


@dataclass(frozen=True)
class Unresolved:
    """Placeholder whose key was absent; the literal placeholder is kept"""
    key: str
    placeholder: str


Resolution = Union[Resolved, Unresolved]


def to_display_text(value: Any) -> str:
    """Render a context value as text for insertion into a string"""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


class TemplateResolver:
    """
    Resolves {{identifier}} placeholders against a context mapping.

    Strings are scanned for placeholders, mappings and lists are walked
    recursively, and every other value passes through unchanged. A key that
    is present in the context is always substituted, even when its value is
    falsy. A missing key leaves the placeholder text untouched.
    """

    def __init__(self, context: Optional[Mapping[str, Any]] = None):
        self.context = context if context is not None else {}

    def resolve_placeholder(self, key: str) -> Resolution:
        if key in self.context:
            return Resolved(key, to_display_text(self.context[key]))
        return Unresolved(key, "{{" + key + "}}")

    def resolve_text(self, text: str) -> str:
        """Resolve placeholders in a single string"""
        def replacement(match):
            resolution = self.resolve_placeholder(match.group(1))
            if isinstance(resolution, Resolved):
                return resolution.text
            return resolution.placeholder

        return PLACEHOLDER_PATTERN.sub(replacement, text)

    def resolve(self, value: Any) -> Any:
        """Return a copy of `value` with every placeholder resolved"""
        if isinstance(value, str):
            return self.resolve_text(value)
        if isinstance(value, Mapping):
            return {k: self.resolve(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.resolve(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self.resolve(item) for item in value)
        return value

    def unresolved_keys(self, value: Any) -> List[str]:
        """Keys referenced in `value` that the current context cannot satisfy"""
        return [key for key in find_placeholders(value) if key not in self.context]


def find_placeholders(value: Any) -> List[str]:
    """List placeholder identifiers referenced anywhere in `value`, in order, without duplicates"""
    found: List[str] = []

    def walk(item: Any) -> None:
        if isinstance(item, str):
            for key in PLACEHOLDER_PATTERN.findall(item):
                if key not in found:
                    found.append(key)
        elif isinstance(item, Mapping):
            for v in item.values():
                walk(v)
        elif isinstance(item, (list, tuple)):
            for v in item:
                walk(v)

    walk(value)
    return found


def substitute(value: Any, context: Mapping[str, Any]) -> Any:
    """Return a copy of `value` with placeholders resolved against `context`"""
    return TemplateResolver(context).resolve(value)
