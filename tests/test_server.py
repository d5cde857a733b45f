"""Tests for server.py Flask endpoints. No network: the completion client is always mocked."""

import io
import zipfile
from unittest.mock import MagicMock, patch

import pytest

from core.orchestrator import Orchestrator
from utils.llm import MissingCredential, Overloaded

AGENT = {
    "name": "Crumb Companion",
    "description": "Bakery help",
    "personality": {"tone": "warm"},
    "capabilities": {"skills": ["Orders"]},
}


@pytest.fixture
def client():
    """Flask test client with a fresh run store and a demo-mode orchestrator."""
    import server
    server.app.config["TESTING"] = True
    server._runs.clear()

    demo_client = MagicMock()
    demo_client.is_available.return_value = False
    with patch("server.orchestrator", Orchestrator(demo_client, deployer=MagicMock())):
        with server.app.test_client() as c:
            yield c


def _orchestrate(client, request="a support bot for my bakery"):
    return client.post("/api/orchestrator", json={"request": request, "user_id": "u1"})


# ---------------------------------------------------------------------------
# POST /api/orchestrator
# ---------------------------------------------------------------------------

class TestOrchestrate:
    def test_missing_request(self, client):
        resp = client.post("/api/orchestrator", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"]

    def test_blank_request(self, client):
        assert client.post("/api/orchestrator", json={"request": "   "}).status_code == 400

    def test_non_json_body(self, client):
        assert client.post("/api/orchestrator", data="nope").status_code == 400

    def test_demo_run(self, client):
        resp = _orchestrate(client)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "completed"
        assert data["mode"] == "demo"
        assert data["user_id"] == "u1"
        assert [s["stage"] for s in data["workflow_log"]] == ["analyze-requirements", "create-spec"]
        assert data["workflow_log"][0]["outcome"] == "model-failed-used-fallback"
        assert data["generated_agents"] == ["demo-agent-1", "demo-agent-2"]
        assert "index.html" in data["files"]
        assert data["final_configuration"]["name"] == "A Support Bot Agent"

    def test_run_is_retrievable(self, client):
        run_id = _orchestrate(client).get_json()["id"]
        resp = client.get(f"/api/orchestrator/runs/{run_id}")
        assert resp.status_code == 200
        assert resp.get_json()["id"] == run_id

    def test_unknown_run(self, client):
        assert client.get("/api/orchestrator/runs/req_missing").status_code == 404

    def test_history_newest_first_without_files(self, client):
        first = _orchestrate(client, "first bot").get_json()["id"]
        second = _orchestrate(client, "second bot").get_json()["id"]
        history = client.get("/api/orchestrator/history").get_json()
        assert [r["id"] for r in history] == [second, first]
        assert "files" not in history[0]


# ---------------------------------------------------------------------------
# Status and catalogue
# ---------------------------------------------------------------------------

class TestStatus:
    def test_unavailable(self, client):
        with patch("server.client.is_available", return_value=False):
            resp = client.get("/api/orchestrator/status")
        assert resp.status_code == 503
        assert resp.get_json()["status"] == "unavailable"

    def test_available(self, client):
        with patch("server.client.is_available", return_value=True):
            resp = client.get("/api/orchestrator/status")
        assert resp.status_code == 200
        assert resp.get_json()["stages"] == 10

    def test_agents(self, client):
        agents = client.get("/api/orchestrator/agents").get_json()
        assert len(agents) == 10
        assert agents[0] == {
            "stage": "strategize",
            "name": "Strategic Planner",
            "description": "Plans the overall agent generation strategy",
        }


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

class TestExport:
    def test_platforms(self, client):
        platforms = client.get("/api/export").get_json()["deployment_platforms"]
        assert [p["value"] for p in platforms] == ["vercel", "local"]

    def test_missing_agent(self, client):
        resp = client.post("/api/export", json={"export_config": {"platform": "local"}})
        assert resp.status_code == 400

    def test_missing_export_config(self, client):
        assert client.post("/api/export", json={"agent": AGENT}).status_code == 400

    def test_bad_platform(self, client):
        resp = client.post("/api/export", json={"agent": AGENT, "export_config": {"platform": "aws"}})
        assert resp.status_code == 400
        assert "aws" in resp.get_json()["details"]

    def test_local_export(self, client):
        resp = client.post("/api/export", json={"agent": AGENT, "export_config": {"platform": "local"}})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert "index.html" in data["exported_agent"]["files"]
        assert data["message"]

    def test_badly_typed_agent_exports(self, client):
        agent = {
            "name": "Crumb",
            "description": "Bakery help",
            "personality": {"response_length": ["x"]},
            "capabilities": {"skills": "orders", "languages": None},
            "design": {"chat_interface": {"font_size": 5}},
        }
        resp = client.post("/api/export", json={"agent": agent, "export_config": {"platform": "local"}})
        assert resp.status_code == 200
        files = resp.get_json()["exported_agent"]["files"]
        assert "- orders" in files["README.md"]

    def test_vercel_export_failure_is_reported(self, client, monkeypatch):
        monkeypatch.delenv("VERCEL_TOKEN", raising=False)
        resp = client.post("/api/export", json={"agent": AGENT, "export_config": {"platform": "vercel"}})
        assert resp.status_code == 200
        assert resp.get_json()["exported_agent"]["deployment"]["status"] == "failed"

    def test_download(self, client):
        exported = client.post(
            "/api/export", json={"agent": AGENT, "export_config": {"platform": "local"}},
        ).get_json()["exported_agent"]
        resp = client.post("/api/export/download", json={"exported_agent": exported})

        assert resp.status_code == 200
        assert resp.mimetype == "application/zip"
        assert "crumb-companion.zip" in resp.headers["Content-Disposition"]
        names = zipfile.ZipFile(io.BytesIO(resp.data)).namelist()
        assert "DEPLOYMENT.md" in names
        assert "api/chat.py" in names

    def test_download_missing(self, client):
        assert client.post("/api/export/download", json={}).status_code == 400

    def test_download_unsafe_path(self, client):
        resp = client.post("/api/export/download", json={
            "exported_agent": {"name": "x", "files": {"../up.txt": "x"}},
        })
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Test and chat
# ---------------------------------------------------------------------------

class TestAgentTest:
    def test_missing_scenario(self, client):
        assert client.post("/api/test", json={"agent": AGENT}).status_code == 400

    def test_unknown_type(self, client):
        resp = client.post("/api/test", json={"agent": AGENT, "test_scenario": "hi", "test_type": "x"})
        assert resp.status_code == 400

    def test_success(self, client):
        result = {"response": "hello", "analysis": {"overall_score": 88}, "test_type": "general",
                  "scenario": "hi"}
        with patch("server.tester.run", return_value=result) as run:
            resp = client.post("/api/test", json={"agent": AGENT, "test_scenario": "hi"})
        assert resp.status_code == 200
        assert resp.get_json()["analysis"]["overall_score"] == 88
        config, scenario, test_type = run.call_args.args
        assert config.name == "Crumb Companion"
        assert (scenario, test_type) == ("hi", "general")

    def test_no_credential(self, client):
        with patch("server.tester.run", side_effect=MissingCredential("no key")):
            resp = client.post("/api/test", json={"agent": AGENT, "test_scenario": "hi"})
        assert resp.status_code == 503


class TestChat:
    def test_missing_message(self, client):
        assert client.post("/api/chat", json={}).status_code == 400

    def test_reply(self, client):
        with patch("server.chat_agent.reply", return_value="Fresh bread!") as reply:
            resp = client.post("/api/chat", json={"message": "bread?", "agent_config": AGENT})
        assert resp.get_json() == {"response": "Fresh bread!"}
        assert reply.call_args.args[1].name == "Crumb Companion"

    def test_reply_without_config(self, client):
        with patch("server.chat_agent.reply", return_value="hi") as reply:
            client.post("/api/chat", json={"message": "hello"})
        assert reply.call_args.args[1] is None

    def test_backend_error(self, client):
        with patch("server.chat_agent.reply", side_effect=Overloaded("503")):
            resp = client.post("/api/chat", json={"message": "bread?"})
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Failed to generate response"

    def test_badly_typed_config_still_replies(self, client):
        config = {
            "name": "Crumb",
            "description": "Bakery help",
            "personality": {"response_length": ["x"]},
            "capabilities": {"skills": "orders", "languages": None},
        }
        with patch("server.client.complete", return_value="Fresh bread!") as complete:
            resp = client.post("/api/chat", json={"message": "bread?", "agent_config": config})
        assert resp.status_code == 200
        assert resp.get_json() == {"response": "Fresh bread!"}
        assert "You are Crumb" in complete.call_args.args[0]

    def test_unexpected_error_is_json(self, client):
        with patch("server.chat_agent.reply", side_effect=RuntimeError("boom")):
            resp = client.post("/api/chat", json={"message": "bread?"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error", "details": "boom"}
