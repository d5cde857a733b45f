#!/usr/bin/env python3
"""AgentForge - HTTP API for the agent-building pipeline."""

import io
import logging
import os
import threading
import time

from dotenv import load_dotenv
from flask import Flask, jsonify, request, send_file
from werkzeug.exceptions import HTTPException

from agents.chat import ChatAgent
from agents.exporter import PLATFORMS, ExportOptions, Exporter, archive_name, build_zip
from agents.tester import TEST_TYPES, AgentTester
from config.defaults import DEFAULTS
from config.stages import STAGE_INFO, STAGE_ORDER
from core.orchestrator import Orchestrator
from core.state import AgentConfiguration, GeneratedFileSet
from utils.llm import CompletionClient, CompletionError, MissingCredential, RateLimiter

load_dotenv()

logger = logging.getLogger(__name__)

app = Flask(__name__)

# One rate gate for every outbound model call made by this process.
limiter = RateLimiter()
client = CompletionClient(limiter=limiter)
orchestrator = Orchestrator(client)
exporter = Exporter()
tester = AgentTester(client)
chat_agent = ChatAgent(client)

# Finished runs keyed by run id: {id: {"run": ..., "created": timestamp}}
_runs = {}
_runs_lock = threading.Lock()
_MAX_RUNS = DEFAULTS["max_runs"]
_RUN_TTL = DEFAULTS["run_ttl"]


def _cleanup_runs():
    """Remove expired runs. Called under _runs_lock."""
    now = time.time()
    expired = [rid for rid, entry in _runs.items() if now - entry["created"] > _RUN_TTL]
    for rid in expired:
        del _runs[rid]
    if len(_runs) > _MAX_RUNS:
        by_age = sorted(_runs.items(), key=lambda x: x[1]["created"])
        for rid, _ in by_age[:len(_runs) - _MAX_RUNS]:
            del _runs[rid]


def _store_run(run):
    with _runs_lock:
        _runs[run.id] = {"run": run, "created": time.time()}
        _cleanup_runs()


def _get_run(run_id):
    with _runs_lock:
        _cleanup_runs()
        entry = _runs.get(run_id)
    return entry["run"] if entry else None


def _run_to_dict(run, include_files=True):
    """Serialize an OrchestrationRun to a JSON-safe dict."""
    result = {
        "id": run.id,
        "user_id": run.user_id,
        "request": run.user_request,
        "created_at": run.created_at.isoformat(),
        "status": run.status.value,
        "mode": run.mode.value,
        "generated_agents": list(run.generated_agents),
        "workflow_log": [
            {
                "stage": r.stage.value,
                "agent": STAGE_INFO[r.stage]["name"],
                "input": r.input_text,
                "output": r.output_text,
                "outcome": r.outcome.value,
            }
            for r in run.workflow_log
        ],
        "transcript": run.transcript,
        "final_configuration": (
            run.final_configuration.to_dict() if run.final_configuration else None
        ),
    }
    if include_files:
        result["files"] = run.file_set.to_dict() if run.file_set else {}
    return result


def _error(message, status, details=None):
    body = {"error": message}
    if details:
        body["details"] = details
    return jsonify(body), status


@app.errorhandler(Exception)
def _handle_unexpected(e):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error on %s", request.path)
    return _error("Internal server error", 500, str(e) or type(e).__name__)


def _parse_config(data):
    """AgentConfiguration from a request body, or None when absent/invalid."""
    if not isinstance(data, dict):
        return None
    try:
        return AgentConfiguration.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.info("Rejected agent configuration: %s", e)
        return None


@app.route("/api/orchestrator", methods=["POST"])
def api_orchestrate():
    """Run the whole pipeline synchronously and return the finished run."""
    data = request.get_json(silent=True) or {}
    req = str(data.get("request") or data.get("user_request") or "").strip()
    if not req:
        return _error("User request is required", 400)

    run = orchestrator.run(req, user_id=str(data.get("user_id") or "anonymous"))
    _store_run(run)
    return jsonify(_run_to_dict(run))


@app.route("/api/orchestrator/status")
def api_orchestrator_status():
    if not client.is_available():
        return jsonify({
            "status": "unavailable",
            "error": f"{DEFAULTS['completion_key_env']} not configured",
            "mode": "demo",
        }), 503
    return jsonify({
        "status": "available",
        "model": client.model,
        "stages": len(STAGE_ORDER),
    })


@app.route("/api/orchestrator/agents")
def api_orchestrator_agents():
    return jsonify([
        {"stage": stage.value, **STAGE_INFO[stage]}
        for stage in STAGE_ORDER
    ])


@app.route("/api/orchestrator/runs/<run_id>")
def api_orchestrator_run(run_id):
    run = _get_run(run_id)
    if run is None:
        return _error("Run not found or expired", 404)
    return jsonify(_run_to_dict(run))


@app.route("/api/orchestrator/history")
def api_orchestrator_history():
    with _runs_lock:
        _cleanup_runs()
        # insertion order is completion order
        runs = [entry["run"] for entry in reversed(list(_runs.values()))]
    return jsonify([_run_to_dict(r, include_files=False) for r in runs])


@app.route("/api/export", methods=["GET"])
def api_export_platforms():
    return jsonify({"deployment_platforms": list(PLATFORMS)})


@app.route("/api/export", methods=["POST"])
def api_export():
    data = request.get_json(silent=True) or {}
    config = _parse_config(data.get("agent"))
    if config is None:
        return _error("Agent configuration is required", 400)
    if not isinstance(data.get("export_config"), dict):
        return _error("Export configuration is required", 400)
    try:
        options = ExportOptions.from_dict(data["export_config"])
    except ValueError as e:
        return _error("Invalid export configuration", 400, str(e))

    try:
        exported = exporter.export(config, options)
    except Exception as e:
        logger.exception("Export of %s failed", config.name)
        return _error("Failed to export agent", 500, str(e))

    return jsonify({
        "success": True,
        "exported_agent": exported.to_dict(),
        "message": exported.deployment.message or "Agent exported successfully",
    })


@app.route("/api/export/download", methods=["POST"])
def api_export_download():
    data = request.get_json(silent=True) or {}
    exported = data.get("exported_agent")
    if not isinstance(exported, dict) or not isinstance(exported.get("files"), dict):
        return _error("Exported agent is required", 400)

    name = str(exported.get("name") or "agent")
    files = {str(path): str(content) for path, content in exported["files"].items()}
    try:
        payload = build_zip(name, GeneratedFileSet(files))
    except ValueError as e:
        return _error("Invalid exported agent", 400, str(e))

    return send_file(
        io.BytesIO(payload),
        mimetype="application/zip",
        as_attachment=True,
        download_name=archive_name(name),
    )


@app.route("/api/test", methods=["POST"])
def api_test():
    data = request.get_json(silent=True) or {}
    config = _parse_config(data.get("agent"))
    if config is None:
        return _error("Agent configuration is required", 400)
    scenario = str(data.get("test_scenario") or "").strip()
    if not scenario:
        return _error("Test scenario is required", 400)
    test_type = data.get("test_type") or "general"
    if test_type not in TEST_TYPES:
        return _error("Unknown test type", 400, f"Valid options: {', '.join(TEST_TYPES)}")

    try:
        result = tester.run(config, scenario, test_type)
    except MissingCredential as e:
        return _error("Completion backend not configured", 503, str(e))
    except CompletionError as e:
        logger.warning("Agent test failed: %s", e)
        return _error("Failed to run test", 500, str(e))

    return jsonify({"success": True, **result})


@app.route("/api/chat", methods=["POST"])
def api_chat():
    data = request.get_json(silent=True) or {}
    message = str(data.get("message") or "").strip()
    if not message:
        return _error("Message is required", 400)
    config = _parse_config(data.get("agent_config"))

    try:
        reply = chat_agent.reply(message, config)
    except MissingCredential as e:
        return _error("Completion backend not configured", 503, str(e))
    except CompletionError as e:
        logger.warning("Preview chat failed: %s", e)
        return _error("Failed to generate response", 500, str(e))

    return jsonify({"response": reply})


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
    )
    port = int(os.environ.get("PORT", 5001))
    print(f"AgentForge running at http://localhost:{port}")
    app.run(debug=False, port=port, threaded=True)
