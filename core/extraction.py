"""Pull agent configuration fields out of free-text stage output.

Each field has one rule: a matcher that returns a value or None, and the
default used when it returns None. Applying the table cannot fail; every
field of ExtractedFields is always populated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from config.stages import PipelineStage
from core.state import (
    AgentConfiguration, Avatar, Capabilities, Deployment, Design, Personality,
    Theme, ChatInterface,
)
from utils.naming import agent_name_from_request

DEFAULT_DESCRIPTION = "Professional customer service assistant"
DEFAULT_CAPABILITIES = ("communication", "problem-solving", "customer-service")
DEFAULT_PRIMARY_COLOR = "#8b5cf6"
DEFAULT_SECONDARY_COLOR = "#7c3aed"
DEFAULT_ACCENT_COLOR = "#a78bfa"
DEFAULT_AVATAR = "🤖"
DEFAULT_KNOWLEDGE_BASES = ("general", "user-specific")

_BULLET_RE = re.compile(r"^\s*(?:[-•*]|\d+\.)\s+")


def section(text, heading):
    """Body of a 'Heading:' section, up to the next blank line or end of text.

    Markdown bold markers around the heading are tolerated.
    """
    pattern = re.compile(
        r"\**" + re.escape(heading) + r":\**[ \t]*(.*?)(?=\n[ \t]*\n|\Z)",
        re.DOTALL | re.IGNORECASE,
    )
    match = pattern.search(text or "")
    if not match:
        return None
    return match.group(1)


def bullets(body):
    """Lines of a section that start with '-' (the leading '-' removed)."""
    items = []
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped.startswith("-"):
            continue
        item = stripped[1:].strip().strip("*").strip()
        if item:
            items.append(item)
    return items


def match_name(text):
    match = re.search(r"^\W*(?:Agent\s+)?Name:\**[ \t]*(.+)$", text or "", re.MULTILINE | re.IGNORECASE)
    if not match:
        return None
    name = match.group(1).strip().strip("*\"'").strip()
    if not name or name.startswith("<"):
        return None
    return name[:60]


def match_description(text):
    body = section(text, "Personality & Tone")
    if body is None:
        return None
    lines = [_BULLET_RE.sub("", line).strip().strip("*").strip() for line in body.splitlines()]
    lines = [line for line in lines if line]
    return ", ".join(lines) or None


def match_capabilities(text):
    body = section(text, "Core Capabilities")
    if body is None:
        return None
    return bullets(body) or None


def match_knowledge_bases(text):
    body = section(text, "Knowledge Bases")
    if body is None:
        return None
    return bullets(body) or None


def _color_matcher(label):
    pattern = re.compile(label + r":\**[ \t]*(#[0-9a-fA-F]{6})\b", re.IGNORECASE)

    def matcher(text):
        match = pattern.search(text or "")
        return match.group(1).lower() if match else None

    return matcher


def match_avatar(text):
    match = re.search(r"Avatar:\**[ \t]*([^\n]+)", text or "", re.IGNORECASE)
    if not match:
        return None
    # "🤖 (Robot)" -> "🤖"
    value = re.sub(r"\s*\(.*?\)\s*$", "", match.group(1)).strip()
    if not value or value.startswith("<"):
        return None
    return value


@dataclass(frozen=True)
class ExtractionRule:
    field: str
    matcher: Callable[[str], Optional[object]]
    default: object

    def apply(self, text):
        value = self.matcher(text)
        return self.default if value is None else value


EXTRACTION_RULES = (
    ExtractionRule("description", match_description, DEFAULT_DESCRIPTION),
    ExtractionRule("capabilities", match_capabilities, list(DEFAULT_CAPABILITIES)),
    ExtractionRule("knowledge_bases", match_knowledge_bases, list(DEFAULT_KNOWLEDGE_BASES)),
    ExtractionRule("primary_color", _color_matcher("Primary Color"), DEFAULT_PRIMARY_COLOR),
    ExtractionRule("secondary_color", _color_matcher("Secondary Color"), DEFAULT_SECONDARY_COLOR),
    ExtractionRule("accent_color", _color_matcher("Accent Color"), DEFAULT_ACCENT_COLOR),
    ExtractionRule("avatar", match_avatar, DEFAULT_AVATAR),
)


@dataclass(frozen=True)
class ExtractedFields:
    name: str
    description: str
    capabilities: list
    knowledge_bases: list
    primary_color: str
    secondary_color: str
    accent_color: str
    avatar: str


def extract_capabilities(text):
    """Capability bullets under 'Core Capabilities:', or the default list."""
    return list(_rule("capabilities").apply(text))


def _rule(name):
    for rule in EXTRACTION_RULES:
        if rule.field == name:
            return rule
    raise KeyError(name)


def extract_fields(spec_text, user_request) -> ExtractedFields:
    """Apply every rule to the create-spec output. Never raises on any text."""
    values = {rule.field: rule.apply(spec_text or "") for rule in EXTRACTION_RULES}
    # Lists are copied so a caller mutating one cannot alter the shared default.
    values["capabilities"] = list(values["capabilities"])
    values["knowledge_bases"] = list(values["knowledge_bases"])
    name = match_name(spec_text or "") or agent_name_from_request(user_request)
    return ExtractedFields(name=name, **values)


def stage_output(workflow_log, stage):
    for result in workflow_log:
        if result.stage == stage:
            return result.output_text
    return ""


def build_configuration(fields: ExtractedFields, architecture="") -> AgentConfiguration:
    """Turn extracted fields into a full configuration with fixed defaults elsewhere."""
    return AgentConfiguration(
        name=fields.name,
        description=fields.description,
        personality=Personality(tone="professional", style="helpful", expertise="multi-domain"),
        capabilities=Capabilities(
            skills=list(fields.capabilities),
            knowledge_bases=list(fields.knowledge_bases),
        ),
        design=Design(
            avatar=Avatar(type="emoji", value=fields.avatar, background_color=fields.primary_color),
            theme=Theme(
                primary_color=fields.primary_color,
                secondary_color=fields.secondary_color,
                accent_color=fields.accent_color,
            ),
            chat_interface=ChatInterface(user_bubble_color=fields.accent_color),
        ),
        deployment=Deployment(platform="vercel", status="ready", architecture=architecture),
    )


def extract_configuration(user_request, workflow_log) -> AgentConfiguration:
    """Final configuration from a workflow log (create-spec output drives it)."""
    spec_text = stage_output(workflow_log, PipelineStage.CREATE_SPEC)
    architecture = stage_output(workflow_log, PipelineStage.ARCHITECTURE_SETUP)
    return build_configuration(extract_fields(spec_text, user_request), architecture)
