"""
Parsing strategies that turn raw completion text into a role's output.

A role is configured with one of these by name; none of them raise on
malformed text. Structured parsers fall back to a best-effort shape and
emit ParseFailureWarning instead.
"""

import json
import re
import warnings
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ParseFailureWarning, ValidationError


OutputParser = Callable[[str], Any]

_FENCED_BLOCK = re.compile(r'```(?:json)?\s*([\s\S]*?)```')
_MVP_LINE = re.compile(r'^mvp(?:[ _]scope)?\s*:\s*(.*)$', re.I)

DEFAULT_TECHNICAL_REQUIREMENTS: Dict[str, str] = {
    "frontend": "Next.js with TypeScript",
    "backend": "Next.js API Routes",
    "database": "PostgreSQL",
    "deployment": "Vercel",
}


def parse_text(text: str) -> str:
    return text


def parse_json_or_text(text: str) -> Any:
    """The decoded JSON document if the whole text is JSON, otherwise the text itself"""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text


def _extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    candidates: List[str] = [m.group(1) for m in _FENCED_BLOCK.finditer(text)]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def parse_requirements(text: str) -> Dict[str, Any]:
    """
    Requirements document as a mapping.

    Uses the JSON object embedded in the text when there is one. Otherwise
    assembles title, overview and MVP features from the prose, seeds the
    default tech stack and keeps the original text under "raw".
    """
    data = _extract_json_object(text)
    if data is not None:
        return data

    warnings.warn(
        "Requirements output is not valid JSON; using text fallback",
        ParseFailureWarning,
    )

    fallback: Dict[str, Any] = {
        "title": "Untitled Project",
        "overview": "",
        "features": [],
        "technical_requirements": dict(DEFAULT_TECHNICAL_REQUIREMENTS),
        "mvp_scope": [],
        "raw": text,
    }
    for line in text.splitlines():
        stripped = line.strip()
        lowered = stripped.lower()
        mvp = _MVP_LINE.match(stripped)
        if lowered.startswith("title:"):
            fallback["title"] = stripped.split(":", 1)[1].strip() or fallback["title"]
        elif lowered.startswith("overview:"):
            fallback["overview"] = stripped.split(":", 1)[1].strip()
        elif mvp:
            fallback["mvp_scope"].extend(item.strip() for item in mvp.group(1).split(",") if item.strip())
        elif re.match(r'^(?:[-*•]|\d+\.)\s+', stripped):
            item = re.sub(r'^(?:[-*•]|\d+\.)\s+', '', stripped)
            if len(item) > 10:
                fallback["mvp_scope"].append(item)

    if not fallback["overview"]:
        fallback["overview"] = text[:200]
    fallback["features"] = [
        {"name": item, "priority": "must-have"} for item in fallback["mvp_scope"]
    ]
    return fallback


def parse_sections(text: str) -> Dict[str, str]:
    """Split a product specification into its named sections"""
    def section(start: str, end: Optional[str]) -> str:
        pattern = rf'{start}:?(.*?)' + (rf'{end}:?' if end else r'$')
        match = re.search(pattern, text, re.S | re.I)
        return match.group(1).strip() if match else ""

    return {
        "requirements": section("Core Requirements", "User Stories"),
        "user_stories": section("User Stories", "Technical Constraints"),
        "tech_stack": section("Recommended Tech Stack", None),
    }


PARSERS: Dict[str, OutputParser] = {
    "text": parse_text,
    "json_or_text": parse_json_or_text,
    "requirements": parse_requirements,
    "sections": parse_sections,
}


def get_parser(name: str) -> OutputParser:
    if name not in PARSERS:
        raise ValidationError(
            f"Unknown output parser: {name}",
            field="parser",
            value=name,
            context={"available": ", ".join(sorted(PARSERS))}
        )
    return PARSERS[name]
