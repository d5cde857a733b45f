"""Agent tester: answers a scenario as the configured agent, then scores the answer."""

import logging
from dataclasses import dataclass, field

from core.state import AgentConfiguration
from utils.llm import is_malformed
from utils.template_engine import render_template

logger = logging.getLogger(__name__)

TEST_TYPES = ("personality", "capability", "behavior", "general")

METRICS = (
    "relevance",
    "accuracy",
    "personality_match",
    "helpfulness",
    "design_consistency",
    "overall_score",
)

NEUTRAL_SCORE = 75
UNPARSED_FEEDBACK = "Analysis could not be parsed automatically."


@dataclass
class ScenarioAnalysis:
    scores: dict = field(default_factory=dict)
    feedback: str = ""
    parsed: bool = True

    def to_dict(self):
        return {**self.scores, "feedback": self.feedback}


def _score(value):
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError, OverflowError):
        return NEUTRAL_SCORE


def normalize_analysis(raw) -> ScenarioAnalysis:
    """Clamp every metric to 0-100. Missing or malformed values become neutral."""
    if is_malformed(raw) or not isinstance(raw, dict):
        return ScenarioAnalysis(
            scores={metric: NEUTRAL_SCORE for metric in METRICS},
            feedback=UNPARSED_FEEDBACK,
            parsed=False,
        )
    scores = {metric: _score(raw.get(metric)) for metric in METRICS}
    feedback = raw.get("feedback")
    return ScenarioAnalysis(scores=scores, feedback=str(feedback) if feedback else "")


def _config_variables(config: AgentConfiguration):
    personality = config.personality
    capabilities = config.capabilities
    return {
        "name": config.name,
        "description": config.description,
        "tone": personality.tone,
        "style": personality.style,
        "expertise": personality.expertise,
        "creativity": personality.creativity,
        "formality": personality.formality,
        "response_length": personality.response_length,
        "skills": ", ".join(capabilities.skills) or "general assistance",
        "languages": ", ".join(capabilities.languages) or "English",
        "integrations": ", ".join(capabilities.integrations) or "none",
        "knowledge_bases": ", ".join(capabilities.knowledge_bases) or "general",
        "greeting": config.design.widget.greeting,
    }


def build_test_prompt(config: AgentConfiguration, scenario, test_type="general"):
    if test_type not in TEST_TYPES:
        test_type = "general"
    variables = _config_variables(config)
    variables["scenario"] = scenario
    return render_template("agent_test", f"{test_type}.txt", variables)


class AgentTester:
    """Two model calls per test: the agent's answer, then a structured analysis of it.

    Completion errors propagate; the HTTP layer turns them into error responses.
    """

    name = "tester"

    def __init__(self, client):
        self.client = client

    def run(self, config: AgentConfiguration, scenario, test_type="general"):
        if test_type not in TEST_TYPES:
            test_type = "general"
        response = self.client.complete(build_test_prompt(config, scenario, test_type)).strip()

        design = config.design
        analysis_prompt = render_template("agent_test", "analysis.txt", {
            "response": response,
            "scenario": scenario,
            "test_type": test_type,
            "avatar_type": design.avatar.type,
            "avatar": design.avatar.value,
            "primary_color": design.theme.primary_color,
            "greeting": design.widget.greeting,
        })
        analysis = normalize_analysis(self.client.complete(analysis_prompt, structured=True))
        if not analysis.parsed:
            logger.warning("Test analysis for %s was not valid JSON, using neutral scores", config.name)

        return {
            "response": response,
            "analysis": analysis.to_dict(),
            "test_type": test_type,
            "scenario": scenario,
        }
