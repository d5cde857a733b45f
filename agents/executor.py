"""Stage executor: renders one stage prompt, calls the model, degrades to fallback text."""

import logging
from dataclasses import dataclass

from config.fallbacks import FALLBACK_TEXT
from config.stages import PipelineStage, display_name
from core.state import StageOutcome, StageResult
from utils.llm import CompletionError, MissingCredential
from utils.template_engine import render_template

logger = logging.getLogger(__name__)

PROMPT_CATEGORY = "prompts"


def build_prompt(stage, accumulated_input):
    """Render the stage's prompt file with the previous stage's output embedded."""
    stage = PipelineStage(stage)
    return render_template(PROMPT_CATEGORY, f"{stage.value}.txt", {"input": accumulated_input})


@dataclass
class RunContext:
    """Flags shared by the stages of a single orchestration run."""

    api_available: bool = True


class StageExecutor:
    """Runs one pipeline stage. Always returns a StageResult, never raises.

    A MissingCredential flips context.api_available so the remaining stages
    of the same run go straight to their fallback text without calling out.
    """

    name = "executor"

    def __init__(self, client):
        self.client = client

    def run_stage(self, stage, accumulated_input, context=None) -> StageResult:
        stage = PipelineStage(stage)
        if context is None:
            context = RunContext()

        if context.api_available:
            output = self._try_model(stage, accumulated_input, context)
            if output:
                return StageResult(
                    stage=stage,
                    input_text=accumulated_input,
                    output_text=output,
                    outcome=StageOutcome.MODEL_SUCCEEDED,
                )

        return StageResult(
            stage=stage,
            input_text=accumulated_input,
            output_text=FALLBACK_TEXT[stage],
            outcome=StageOutcome.FALLBACK_USED,
        )

    def _try_model(self, stage, accumulated_input, context):
        """Return the model's non-empty output, or None when the fallback is due."""
        name = display_name(stage)
        try:
            output = self.client.complete(build_prompt(stage, accumulated_input))
        except MissingCredential:
            logger.warning("%s: no completion credential, rest of run uses fallback text", name)
            context.api_available = False
            return None
        except CompletionError as e:
            logger.warning("%s failed (%s: %s), using fallback text", name, type(e).__name__, e)
            return None
        except Exception:
            logger.exception("%s raised unexpectedly, using fallback text", name)
            return None

        if not output or not output.strip():
            logger.warning("%s returned an empty response, using fallback text", name)
            return None
        return output
