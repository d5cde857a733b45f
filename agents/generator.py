"""Code generator: renders the deployable chat application for an agent configuration."""

import html
import json
import re

from config.defaults import DEFAULTS
from core.extraction import extract_configuration
from core.state import AgentConfiguration, GeneratedFileSet
from utils.template_engine import render_template

TEMPLATE_CATEGORY = "chat_app"

CHAT_APP_FILES = ("index.html", "api/chat.py", "requirements.txt", "README.md", ".env.example")

_FONT_SIZES = {"small": "14px", "medium": "16px", "large": "18px"}

_LENGTH_HINTS = {
    "concise": "short, two or three sentences unless more is asked for",
    "detailed": "thorough, with examples where they help",
    "adaptive": "as long as the question needs and no longer",
}

_COLOR_RE = re.compile(r"^(#[0-9a-fA-F]{3,8}|[a-zA-Z]{3,20})$")
_FONT_RE = re.compile(r"[^\w\s-]")


def _css_color(value, default):
    value = str(value or "").strip()
    return value if _COLOR_RE.match(value) else default


def _css_font(value):
    family = _FONT_RE.sub("", str(value or "")).strip()
    return f'"{family}"' if family else "Inter"


def _radius(value):
    try:
        return max(0, min(32, int(value)))
    except (TypeError, ValueError):
        return 8


def _script_json(value):
    """JSON safe to embed inside a <script> element."""
    return json.dumps(value, ensure_ascii=False, sort_keys=True).replace("</", "<\\/")


def build_system_prompt(config: AgentConfiguration) -> str:
    """System instruction for the deployed chat endpoint."""
    personality = config.personality
    capabilities = config.capabilities
    return render_template(TEMPLATE_CATEGORY, "system_prompt.tpl", {
        "name": config.name,
        "description": config.description,
        "tone": personality.tone,
        "style": personality.style,
        "expertise": personality.expertise,
        "creativity": personality.creativity,
        "formality": personality.formality,
        "skills": ", ".join(capabilities.skills) or "general assistance",
        "languages": ", ".join(capabilities.languages) or "English",
        "knowledge_bases": ", ".join(capabilities.knowledge_bases) or "general",
        "length_hint": _LENGTH_HINTS.get(personality.response_length, _LENGTH_HINTS["adaptive"]),
    }, strict=True)


class CodeGenerator:
    """Deterministic: the same configuration always yields byte-identical files."""

    name = "generator"

    def __init__(self, model=None):
        self.model = model or DEFAULTS["model"]

    def generate(self, user_request, workflow_log) -> GeneratedFileSet:
        config = extract_configuration(user_request, workflow_log)
        return self.render(config, user_request)

    def render(self, config: AgentConfiguration, user_request="") -> GeneratedFileSet:
        files = {
            "index.html": self._render_index(config),
            "api/chat.py": self._render_chat_endpoint(config),
            "requirements.txt": render_template(TEMPLATE_CATEGORY, "requirements_txt.tpl", {}, strict=True),
            "README.md": self._render_readme(config, user_request),
            ".env.example": render_template(TEMPLATE_CATEGORY, "env_example.tpl", {}, strict=True),
        }
        return GeneratedFileSet(files)

    def _render_index(self, config):
        design = config.design
        theme = design.theme
        chat = design.chat_interface
        tagline = config.description
        if len(tagline) > 120:
            tagline = tagline[:117].rstrip() + "..."

        return render_template(TEMPLATE_CATEGORY, "index_html.tpl", {
            "name": html.escape(config.name),
            "tagline": html.escape(tagline),
            "avatar": html.escape(str(design.avatar.value)),
            "placeholder": html.escape(str(design.widget.placeholder)),
            "primary_color": _css_color(theme.primary_color, "#8b5cf6"),
            "secondary_color": _css_color(theme.secondary_color, "#7c3aed"),
            "accent_color": _css_color(theme.accent_color, "#a78bfa"),
            "background_color": _css_color(theme.background_color, "#ffffff"),
            "text_color": _css_color(theme.text_color, "#1f2937"),
            "agent_bubble_color": _css_color(chat.agent_bubble_color, "#f3f4f6"),
            "user_bubble_color": _css_color(chat.user_bubble_color, "#8b5cf6"),
            "avatar_background": _css_color(design.avatar.background_color, "#8b5cf6"),
            "avatar_text_color": _css_color(design.avatar.text_color, "#ffffff"),
            "border_radius": _radius(theme.border_radius),
            "font_size": _FONT_SIZES.get(chat.font_size, _FONT_SIZES["medium"]),
            "font_family": _css_font(chat.font_family),
            "agent_json": _script_json({
                "name": config.name,
                "greeting": design.widget.greeting,
            }),
        }, strict=True)

    def _render_chat_endpoint(self, config):
        return render_template(TEMPLATE_CATEGORY, "chat_py.tpl", {
            "model": repr(self.model),
            "system_prompt": repr(build_system_prompt(config)),
        }, strict=True)

    def _render_readme(self, config, user_request):
        skills = config.capabilities.skills or ["general assistance"]
        return render_template(TEMPLATE_CATEGORY, "readme_md.tpl", {
            "name": config.name,
            "description": config.description,
            "skills_list": "\n".join(f"- {skill}" for skill in skills),
            "user_request": " ".join((user_request or "").split()),
        }, strict=True)
