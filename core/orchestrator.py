"""Pipeline orchestrator: ten sequential stages, then extraction, code generation and deployment."""

import logging

from agents.deployer import Deployer, DeploymentError
from agents.executor import RunContext, StageExecutor
from agents.generator import CodeGenerator
from config.defaults import DEFAULTS
from config.fallbacks import DEMO_RESPONSE, ERROR_RESPONSE, FALLBACK_TEXT
from config.stages import DEMO_STAGES, STAGE_ORDER, display_name
from core.extraction import extract_configuration
from core.state import (
    OrchestrationRun, RunMode, RunStatus, StageOutcome, StageResult,
)
from utils.template_engine import render_string

logger = logging.getLogger(__name__)

INPUT_PREVIEW_CHARS = 200


def format_stage_block(result: StageResult) -> str:
    """Transcript block for one stage: display name, outcome, input, output."""
    preview = result.input_text
    if len(preview) > INPUT_PREVIEW_CHARS:
        preview = preview[:INPUT_PREVIEW_CHARS] + "..."
    return (
        f"\n\n**{display_name(result.stage)}** ({result.outcome.value})\n"
        f"Input: {preview}\n"
        f"Output: {result.output_text}"
    )


class Orchestrator:
    """Runs one user request end to end and returns the finished OrchestrationRun.

    Stage failures never surface here: the executor absorbs them. Deployment
    failure marks the configuration's deployment as failed but the run still
    completes. Only an unexpected exception fails the run.
    """

    def __init__(self, client, executor=None, generator=None, deployer=None):
        self.client = client
        self.executor = executor or StageExecutor(client)
        self.generator = generator or CodeGenerator()
        self.deployer = deployer or Deployer()

    def run(self, user_request, user_id="anonymous") -> OrchestrationRun:
        run = OrchestrationRun(user_request=user_request, user_id=user_id or "anonymous")
        logger.info("Run %s started for %s", run.id, run.user_id)
        try:
            if self.client.is_available():
                self._run_stages(run)
            else:
                self._run_demo(run)
            self._build_agent(run)
        except Exception as e:
            logger.exception("Run %s failed unexpectedly", run.id)
            run.generated_agents = list(DEFAULTS["fallback_agents"])
            run.append_transcript("\n\n" + render_string(ERROR_RESPONSE, {
                "user_request": user_request,
                "error": str(e) or type(e).__name__,
                "key_env": DEFAULTS["completion_key_env"],
            }))
            run.finish(RunStatus.FAILED)
            return run

        run.finish(RunStatus.COMPLETED)
        logger.info("Run %s completed (%s, %d stages)", run.id, run.mode.value, len(run.workflow_log))
        return run

    def _run_stages(self, run):
        context = RunContext()
        current_input = run.user_request
        for stage in STAGE_ORDER:
            result = self.executor.run_stage(stage, current_input, context)
            run.record(result)
            run.append_transcript(format_stage_block(result))
            current_input = result.output_text
        run.generated_agents = [stage.value for stage in STAGE_ORDER]

    def _run_demo(self, run):
        """No credential: record the demo stages with their fallback text, no model calls."""
        logger.warning("Completion backend unavailable, run %s uses demo mode", run.id)
        run.mode = RunMode.DEMO
        current_input = run.user_request
        for stage in DEMO_STAGES:
            run.record(StageResult(
                stage=stage,
                input_text=current_input,
                output_text=FALLBACK_TEXT[stage],
                outcome=StageOutcome.FALLBACK_USED,
            ))
            current_input = FALLBACK_TEXT[stage]
        run.generated_agents = list(DEFAULTS["demo_agents"])
        run.append_transcript(render_string(DEMO_RESPONSE, {
            "user_request": run.user_request,
            "key_env": DEFAULTS["completion_key_env"],
        }))

    def _build_agent(self, run):
        config = extract_configuration(run.user_request, run.workflow_log)
        run.final_configuration = config
        run.file_set = self.generator.render(config, run.user_request)

        deployment = config.deployment
        if run.mode == RunMode.DEMO:
            # The deployed app would have no credential to answer with.
            deployment.status = "skipped"
            deployment.message = "Deployment skipped in demo mode"
            return

        try:
            result = self.deployer.deploy(run.file_set, config.name)
        except DeploymentError as e:
            logger.warning("Deployment for run %s failed: %s", run.id, e)
            deployment.status = "failed"
            deployment.message = str(e)
            run.append_transcript(
                f"\n\n**Deployment Failed**\n"
                f"Error: {e}\n"
                f"The generated files are still available for download and manual deployment."
            )
            return

        deployment.status = "deployed"
        deployment.url = result.url
        deployment.deployment_id = result.deployment_id
        deployment.message = f"Deployed to {result.url}"
        logger.info("Run %s deployed to %s", run.id, result.url)
        run.append_transcript(
            f"\n\n**Deployment Successful**\n"
            f"Live URL: {result.url}\n"
            f"Deployment ID: {result.deployment_id}"
        )
