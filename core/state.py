"""Pipeline state models shared across all stages."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from config.stages import PipelineStage


class StageOutcome(str, Enum):
    MODEL_SUCCEEDED = "model-succeeded"
    FALLBACK_USED = "model-failed-used-fallback"


class RunStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RunMode(str, Enum):
    LIVE = "live"
    DEMO = "demo"


@dataclass(frozen=True)
class StageResult:
    stage: PipelineStage
    input_text: str
    output_text: str
    outcome: StageOutcome

    @property
    def used_fallback(self):
        return self.outcome == StageOutcome.FALLBACK_USED


def _clamp_percent(value):
    try:
        value = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 50
    return max(0, min(100, value))


@dataclass
class Personality:
    tone: str = "professional"
    style: str = "helpful"
    expertise: str = "general"
    response_length: str = "adaptive"     # concise|detailed|adaptive
    creativity: int = 50                  # 0-100
    formality: int = 50                   # 0-100

    def __post_init__(self):
        self.creativity = _clamp_percent(self.creativity)
        self.formality = _clamp_percent(self.formality)


@dataclass
class Capabilities:
    skills: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=lambda: ["English"])
    integrations: list[str] = field(default_factory=list)
    knowledge_bases: list[str] = field(default_factory=list)

    def __post_init__(self):
        # skills behave as a set, first occurrence keeps its position
        self.skills = list(dict.fromkeys(str(s) for s in self.skills if s))


@dataclass
class Avatar:
    type: str = "emoji"                   # emoji|initials|icon
    value: str = "🤖"
    background_color: str = "#8b5cf6"
    text_color: str = "#ffffff"


@dataclass
class Theme:
    primary_color: str = "#8b5cf6"
    secondary_color: str = "#7c3aed"
    accent_color: str = "#a78bfa"
    background_color: str = "#ffffff"
    text_color: str = "#1f2937"
    border_radius: int = 8


@dataclass
class ChatInterface:
    bubble_style: str = "rounded"
    font_size: str = "medium"             # small|medium|large
    font_family: str = "Inter"
    agent_bubble_color: str = "#f3f4f6"
    user_bubble_color: str = "#8b5cf6"


@dataclass
class Widget:
    greeting: str = "Hello! How can I help you today?"
    placeholder: str = "Type your message..."


@dataclass
class Design:
    avatar: Avatar = field(default_factory=Avatar)
    theme: Theme = field(default_factory=Theme)
    chat_interface: ChatInterface = field(default_factory=ChatInterface)
    widget: Widget = field(default_factory=Widget)


@dataclass
class Deployment:
    platform: str = "vercel"
    status: str = "ready"                 # ready|deployed|failed|skipped
    url: str | None = None
    deployment_id: str | None = None
    architecture: str = ""
    message: str = ""


@dataclass
class AgentConfiguration:
    name: str
    description: str
    personality: Personality = field(default_factory=Personality)
    capabilities: Capabilities = field(default_factory=Capabilities)
    design: Design = field(default_factory=Design)
    deployment: Deployment = field(default_factory=Deployment)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        """Build from a JSON-shaped dict. Missing sections fall back to defaults."""
        if not isinstance(data, dict):
            raise ValueError("Agent configuration must be an object")
        design = data.get("design")
        if not isinstance(design, dict):
            design = {}
        return cls(
            name=str(data.get("name") or "Untitled Agent"),
            description=str(data.get("description") or ""),
            personality=_build(Personality, data.get("personality")),
            capabilities=_build(Capabilities, data.get("capabilities")),
            design=Design(
                avatar=_build(Avatar, design.get("avatar")),
                theme=_build(Theme, design.get("theme")),
                chat_interface=_build(ChatInterface, design.get("chat_interface")),
                widget=_build(Widget, design.get("widget")),
            ),
            deployment=_build(Deployment, data.get("deployment")),
        )


def _coerce(value, default):
    """Fit a JSON value to the type of the field default, or return the default."""
    if value is None:
        return default
    if isinstance(default, list):
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return default
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return default
        return value
    if isinstance(default, str) or default is None:
        return value if isinstance(value, str) else default
    return value


def _build(klass, values):
    """Instantiate a section dataclass, ignoring keys it does not know.

    Values of the wrong JSON type fall back to the field default.
    """
    if not isinstance(values, dict):
        return klass()
    defaults = klass()
    known = klass.__dataclass_fields__
    return klass(**{
        k: _coerce(v, getattr(defaults, k))
        for k, v in values.items() if k in known
    })


@dataclass(frozen=True)
class GeneratedFileSet:
    """Relative path -> file content. Read-only once built."""

    files: Mapping[str, str]

    def __post_init__(self):
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))

    def paths(self):
        return list(self.files)

    def __getitem__(self, path):
        return self.files[path]

    def __iter__(self):
        return iter(self.files.items())

    def __len__(self):
        return len(self.files)

    def to_dict(self):
        return dict(self.files)


def _new_run_id():
    return f"req_{uuid.uuid4().hex[:12]}"


@dataclass
class OrchestrationRun:
    user_request: str
    user_id: str = "anonymous"
    id: str = field(default_factory=_new_run_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    workflow_log: list[StageResult] = field(default_factory=list)
    final_configuration: AgentConfiguration | None = None
    file_set: GeneratedFileSet | None = None
    transcript: str = ""
    status: RunStatus = RunStatus.PROCESSING
    mode: RunMode = RunMode.LIVE
    generated_agents: list[str] = field(default_factory=list)

    @property
    def finished(self):
        return self.status != RunStatus.PROCESSING

    def _ensure_open(self):
        if self.finished:
            raise RuntimeError(f"Run {self.id} is {self.status.value} and can no longer change")

    def record(self, result: StageResult):
        self._ensure_open()
        self.workflow_log.append(result)

    def append_transcript(self, block):
        self._ensure_open()
        self.transcript += block

    def finish(self, status: RunStatus):
        self._ensure_open()
        self.status = status
        self.workflow_log = tuple(self.workflow_log)
        self.generated_agents = tuple(self.generated_agents)
