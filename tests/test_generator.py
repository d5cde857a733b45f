"""Tests for agents.generator: fixed file set, deterministic, context-escaped output."""

import ast

from agents.generator import CHAT_APP_FILES, CodeGenerator, build_system_prompt
from config.stages import PipelineStage
from core.extraction import extract_configuration
from core.state import AgentConfiguration, StageOutcome, StageResult


def _config(**overrides):
    data = {
        "name": "Crumb Companion",
        "description": "Answers bakery questions",
        "personality": {"tone": "warm", "style": "playful", "expertise": "baking",
                        "response_length": "concise"},
        "capabilities": {"skills": ["Orders", "Allergens"], "languages": ["English", "French"]},
        "design": {
            "theme": {"primary_color": "#f97316"},
            "avatar": {"value": "🥐"},
            "widget": {"greeting": "Bonjour! Need a croissant?", "placeholder": "Ask away..."},
        },
    }
    data.update(overrides)
    return AgentConfiguration.from_dict(data)


class TestFileSet:
    def test_fixed_paths(self):
        files = CodeGenerator().render(_config())
        assert files.paths() == list(CHAT_APP_FILES)

    def test_paths_do_not_depend_on_content(self):
        a = CodeGenerator().render(_config())
        b = CodeGenerator().render(AgentConfiguration(name="X", description=""))
        assert a.paths() == b.paths()

    def test_deterministic(self):
        first = CodeGenerator().render(_config(), "bakery bot").to_dict()
        second = CodeGenerator().render(_config(), "bakery bot").to_dict()
        assert first == second

    def test_generate_from_workflow_log(self):
        log = [StageResult(PipelineStage.CREATE_SPEC, "req", "Agent Name: Loaf Bot",
                           StageOutcome.MODEL_SUCCEEDED)]
        files = CodeGenerator().generate("bakery bot", log)
        expected = CodeGenerator().render(extract_configuration("bakery bot", log), "bakery bot")
        assert files.to_dict() == expected.to_dict()
        assert "Loaf Bot" in files["README.md"]


class TestIndexHtml:
    def test_design_interpolated(self):
        page = CodeGenerator().render(_config())["index.html"]
        assert "--primary: #f97316;" in page
        assert "🥐" in page
        assert 'placeholder="Ask away..."' in page
        assert "Bonjour! Need a croissant?" in page
        assert "$" not in page.replace("$1", "")

    def test_markdown_replacement_keeps_js_backreference(self):
        page = CodeGenerator().render(_config())["index.html"]
        assert '"<strong>$1</strong>"' in page

    def test_name_is_html_escaped(self):
        page = CodeGenerator().render(_config(name="<script>alert(1)</script>"))["index.html"]
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page
        # the only closing script tag is the page's own
        assert page.count("</script>") == 1

    def test_unsafe_css_value_replaced_by_default(self):
        config = _config(design={"theme": {"primary_color": "red;}</style><script>"}})
        page = CodeGenerator().render(config)["index.html"]
        assert "--primary: #8b5cf6;" in page
        assert "</style><script>" not in page


class TestChatEndpoint:
    def test_is_valid_python(self):
        source = CodeGenerator().render(_config(name="Bob's \"$pecial\" Agent"))["api/chat.py"]
        ast.parse(source)

    def test_embeds_system_prompt_and_model(self):
        source = CodeGenerator(model="test-model").render(_config())["api/chat.py"]
        assert "MODEL = 'test-model'" in source
        assert "Crumb Companion" in source
        assert "DO NOT include any design descriptions" in source

    def test_system_prompt_contents(self):
        prompt = build_system_prompt(_config())
        assert prompt.startswith("You are Crumb Companion")
        assert "Capabilities: Orders, Allergens" in prompt
        assert "Languages: English, French" in prompt
        assert "warm, playful assistant with baking expertise" in prompt
        assert "two or three sentences" in prompt


class TestSupportFiles:
    def test_requirements(self):
        reqs = CodeGenerator().render(_config())["requirements.txt"]
        assert "flask" in reqs
        assert "anthropic" in reqs

    def test_readme_lists_capabilities(self):
        readme = CodeGenerator().render(_config(), "a bakery helper")["README.md"]
        assert readme.startswith("# Crumb Companion")
        assert "- Orders\n- Allergens" in readme
        assert '"a bakery helper"' in readme

    def test_env_example(self):
        assert "ANTHROPIC_API_KEY=" in CodeGenerator().render(_config())[".env.example"]
