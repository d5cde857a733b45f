"""Preview chat: one reply from a configured agent, before it is exported."""

from agents.generator import build_system_prompt
from core.state import AgentConfiguration
from utils.template_engine import render_template

GENERIC_PROMPT = (
    "You are a helpful AI assistant. Respond to the user's message in a helpful "
    "and informative way.\n\nUser message: "
)


def build_chat_prompt(message, config: AgentConfiguration = None):
    if config is None:
        return GENERIC_PROMPT + message
    return render_template("chat", "preview.txt", {
        "system_prompt": build_system_prompt(config),
        "message": message,
        "name": config.name,
    }, strict=True)


class ChatAgent:
    name = "chat"

    def __init__(self, client):
        self.client = client

    def reply(self, message, config: AgentConfiguration = None) -> str:
        return self.client.complete(build_chat_prompt(message, config)).strip()
