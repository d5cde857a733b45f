"""Deployer: publishes a generated file set to a hosting platform through its CLI."""

import json
import logging
import os
import re
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass

from config.defaults import DEFAULTS
from core.state import GeneratedFileSet
from utils.naming import slugify

logger = logging.getLogger(__name__)


class DeploymentError(Exception):
    """Deployment could not be completed. The message is safe to show users."""


@dataclass(frozen=True)
class DeploymentResult:
    url: str
    deployment_id: str


class _VercelBackend:
    name = "vercel"
    label = "Vercel"
    cli_names = ["vercel"]
    install_hint = "npm install -g vercel"
    url_re = re.compile(r"Production: (https://\S+\.vercel\.app)")
    any_url_re = re.compile(r"https://[\w.-]+\.vercel\.app")
    inspect_re = re.compile(r"Inspect: https://vercel\.com/[^/\s]+/[^/\s]+/(\S+)")
    env_var = DEFAULTS["deploy_token_env"]
    env_hint = "export VERCEL_TOKEN=<token from vercel.com/account/tokens>"

    def write_config(self, work_dir: str) -> None:
        """Route /api/chat to the Python function, everything else is static."""
        config = {
            "version": 2,
            "functions": {"api/chat.py": {"maxDuration": 30}},
        }
        with open(os.path.join(work_dir, "vercel.json"), "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)

    def deploy_args(self, project_name: str):
        return ["--prod", "--yes", "--name", project_name]

    def cli_env(self):
        """Subprocess environment. The CLI reads its token from here, never from argv."""
        env = os.environ.copy()
        env.pop(DEFAULTS["completion_key_env"], None)
        return env

    def find_cli(self):
        for name in self.cli_names:
            if shutil.which(name):
                return name
        return None

    def auth_ok(self):
        return bool(os.environ.get(self.env_var))

    def extract_url(self, stdout: str, stderr: str):
        combined = stdout + stderr
        match = self.url_re.search(combined)
        if match:
            return match.group(1)
        match = self.any_url_re.search(combined)
        return match.group(0) if match else None

    def extract_deployment_id(self, stdout: str, stderr: str):
        match = self.inspect_re.search(stdout + stderr)
        if match:
            return match.group(1)
        return f"dpl_{int(time.time() * 1000)}"


BACKENDS = {
    "vercel": _VercelBackend(),
}


class Deployer:
    """Writes the file set into a scratch workspace and runs the platform CLI.

    The workspace is removed when deploy() returns, whether it succeeded or not.
    """

    name = "deployer"
    BACKENDS = BACKENDS

    def __init__(self, platform=None, timeout=None, workspace_root=None):
        self.platform = platform or DEFAULTS["deploy_platform"]
        self.timeout = DEFAULTS["deploy_timeout"] if timeout is None else timeout
        self.workspace_root = workspace_root

    def deploy(self, file_set: GeneratedFileSet, agent_name: str) -> DeploymentResult:
        backend = BACKENDS.get(self.platform)
        if backend is None:
            valid = ", ".join(sorted(BACKENDS))
            raise DeploymentError(f"Unknown platform '{self.platform}'. Valid options: {valid}")
        if not backend.auth_ok():
            raise DeploymentError(f"{backend.env_var} not set. {backend.env_hint}")
        cli = backend.find_cli()
        if cli is None:
            raise DeploymentError(f"{backend.label} CLI not found. {backend.install_hint}")

        project_name = slugify(agent_name, fallback="agent")
        work_dir = tempfile.mkdtemp(prefix=f"{project_name}-", dir=self.workspace_root)
        logger.info("Deploying %s to %s from %s", project_name, backend.label, work_dir)
        try:
            write_files(file_set, work_dir)
            backend.write_config(work_dir)
            return self._run_cli_deploy(backend, cli, project_name, work_dir)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

    def _run_cli_deploy(self, backend, cli, project_name, work_dir) -> DeploymentResult:
        cmd = [cli] + backend.deploy_args(project_name)
        try:
            result = subprocess.run(
                cmd,
                cwd=work_dir,
                env=backend.cli_env(),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DeploymentError(f"Deploy timed out after {self.timeout} seconds") from e
        except FileNotFoundError as e:
            raise DeploymentError(f"CLI '{cli}' could not be executed") from e

        stdout, stderr = result.stdout or "", result.stderr or ""
        url = backend.extract_url(stdout, stderr)
        if url:
            # The CLI sometimes exits non-zero after the deployment is already live.
            if result.returncode != 0:
                logger.warning("%s exited %d but reported %s", cli, result.returncode, url)
            return DeploymentResult(url=url, deployment_id=backend.extract_deployment_id(stdout, stderr))

        if result.returncode != 0:
            detail = (stderr or stdout or "no output").strip()
            raise DeploymentError(f"{cli} failed (exit {result.returncode}): {_redact(detail)}")
        raise DeploymentError("Deploy succeeded but no URL found in output.")


def write_files(file_set: GeneratedFileSet, work_dir: str) -> None:
    """Write every file of the set under work_dir, refusing paths that escape it."""
    root = os.path.realpath(work_dir)
    for path, content in file_set:
        target = os.path.realpath(os.path.join(root, path))
        if not target.startswith(root + os.sep):
            raise DeploymentError(f"Refusing to write outside the workspace: {path}")
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)


def _redact(text):
    """Strip credential values from CLI output before it reaches a message."""
    for env in (DEFAULTS["deploy_token_env"], DEFAULTS["completion_key_env"]):
        secret = os.environ.get(env)
        if secret:
            text = text.replace(secret, "***")
    return text[:500]
