"""Exporter: file set for a builder configuration, optional deployment, zip bundling."""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field

from agents.deployer import Deployer, DeploymentError
from agents.generator import CodeGenerator
from core.state import AgentConfiguration, Deployment, GeneratedFileSet
from utils.naming import slugify
from utils.template_engine import render_template

logger = logging.getLogger(__name__)

PLATFORMS = (
    {"value": "vercel", "label": "Vercel", "description": "Deploy to Vercel (recommended)"},
    {"value": "local", "label": "Local", "description": "Download and run locally"},
)

DEPLOYMENT_GUIDE = "DEPLOYMENT.md"


@dataclass(frozen=True)
class ExportOptions:
    platform: str = "vercel"
    include_api: bool = True

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError("Export options must be an object")
        platform = str(data.get("platform") or "vercel")
        if platform not in {p["value"] for p in PLATFORMS}:
            valid = ", ".join(p["value"] for p in PLATFORMS)
            raise ValueError(f"Unknown platform '{platform}'. Valid options: {valid}")
        return cls(platform=platform, include_api=bool(data.get("include_api", True)))


@dataclass
class ExportedAgent:
    name: str
    description: str
    slug: str
    platform: str
    files: GeneratedFileSet
    deployment: Deployment = field(default_factory=Deployment)

    def to_dict(self):
        return {
            "name": self.name,
            "description": self.description,
            "slug": self.slug,
            "platform": self.platform,
            "files": self.files.to_dict(),
            "deployment": {
                "status": self.deployment.status,
                "url": self.deployment.url,
                "deployment_id": self.deployment.deployment_id,
                "message": self.deployment.message,
            },
        }


class Exporter:
    name = "exporter"

    def __init__(self, generator=None, deployer=None):
        self.generator = generator or CodeGenerator()
        self.deployer = deployer or Deployer()

    def export(self, config: AgentConfiguration, options: ExportOptions) -> ExportedAgent:
        files = self.generator.render(config).to_dict()
        if not options.include_api:
            files.pop(".env.example", None)
        exported = ExportedAgent(
            name=config.name,
            description=config.description,
            slug=slugify(config.name),
            platform=options.platform,
            files=GeneratedFileSet(files),
        )

        if options.platform != "vercel":
            exported.deployment = Deployment(
                platform=options.platform,
                status="ready",
                message=f"{config.name} is ready to download. See {DEPLOYMENT_GUIDE} inside the archive.",
            )
            return exported

        try:
            result = self.deployer.deploy(exported.files, config.name)
        except DeploymentError as e:
            logger.warning("Export deployment of %s failed: %s", config.name, e)
            exported.deployment = Deployment(
                platform="vercel",
                status="failed",
                message=f"Deployment failed: {e}. Download the files to deploy manually.",
            )
            return exported

        exported.deployment = Deployment(
            platform="vercel",
            status="deployed",
            url=result.url,
            deployment_id=result.deployment_id,
            message=(
                f"{config.name} is now live on Vercel!\n\n"
                f"Live URL: {result.url}\n"
                f"Deployment ID: {result.deployment_id}\n\n"
                f"Set ANTHROPIC_API_KEY in the project settings if chat replies are failing."
            ),
        )
        return exported


def build_zip(name, file_set: GeneratedFileSet) -> bytes:
    """Zip archive of the file set plus DEPLOYMENT.md, entries in path order."""
    guide = render_template("export", "deployment_md.tpl", {"name": name}, strict=True)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path, content in sorted(file_set):
            if path.startswith(("/", "\\")) or ".." in path.replace("\\", "/").split("/"):
                raise ValueError(f"Unsafe path in file set: {path}")
            archive.writestr(path, content)
        if DEPLOYMENT_GUIDE not in file_set.files:
            archive.writestr(DEPLOYMENT_GUIDE, guide)
    return buffer.getvalue()


def archive_name(name):
    return f"{slugify(name)}.zip"
