"""Tests for utils.template_engine and the bundled prompt templates."""

import pytest

from agents.executor import build_prompt
from config.fallbacks import FALLBACK_TEXT
from config.stages import DEMO_STAGES, STAGE_INFO, STAGE_ORDER, PipelineStage
from utils.template_engine import load_template, render_string
from utils.naming import agent_name_from_request, slugify


class TestRenderString:
    def test_substitutes_named_placeholders(self):
        assert render_string("Hello $name", {"name": "Ada"}) == "Hello Ada"

    def test_safe_mode_leaves_unknown_placeholders(self):
        assert render_string("$known $unknown", {"known": "x"}) == "x $unknown"

    def test_strict_mode_raises_on_missing(self):
        with pytest.raises(KeyError):
            render_string("$missing", {}, strict=True)

    def test_double_dollar_is_literal(self):
        assert render_string("costs $$5", {}, strict=True) == "costs $5"

    def test_values_are_not_rescanned(self):
        assert render_string("$a", {"a": "$b"}, strict=True) == "$b"


class TestLoadTemplate:
    def test_rejects_path_escape(self):
        with pytest.raises(ValueError):
            load_template("prompts", "../../pyproject.toml")

    def test_missing_template(self):
        with pytest.raises(FileNotFoundError):
            load_template("prompts", "nope.txt")


class TestStagePrompts:
    @pytest.mark.parametrize("stage", list(STAGE_ORDER))
    def test_every_stage_prompt_embeds_input(self, stage):
        prompt = build_prompt(stage, "UNIQUE-INPUT-MARKER")
        assert "UNIQUE-INPUT-MARKER" in prompt
        assert "$input" not in prompt

    def test_stage_order(self):
        assert len(STAGE_ORDER) == 10
        assert STAGE_ORDER[0] == PipelineStage.STRATEGIZE
        assert STAGE_ORDER[-1] == PipelineStage.ARCHITECTURE_SETUP

    def test_every_stage_has_info_and_fallback(self):
        for stage in STAGE_ORDER:
            assert STAGE_INFO[stage]["name"]
            assert FALLBACK_TEXT[stage].strip()

    def test_demo_stages_are_pipeline_stages(self):
        assert set(DEMO_STAGES) <= set(STAGE_ORDER)
        assert len(DEMO_STAGES) < len(STAGE_ORDER)


class TestNaming:
    def test_slugify(self):
        assert slugify("My Great Agent!") == "my-great-agent"
        assert slugify("   ") == "agent"
        assert len(slugify("x" * 200)) <= 48

    def test_agent_name_from_request(self):
        assert agent_name_from_request("friendly bakery support bot") == "Friendly Bakery Support Agent"
        assert agent_name_from_request("") == "Custom Agent"
