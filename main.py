#!/usr/bin/env python3
"""AgentForge - build a deployable chat agent from a plain-language request.

Usage:
    python main.py build --prompt "a friendly support bot for my bakery"
    python main.py build --prompt "..." --out ./my-agent --verbose
    python main.py stages
    python main.py status
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from agents.deployer import write_files
from config.defaults import DEFAULTS
from config.stages import STAGE_INFO, STAGE_ORDER
from core.orchestrator import Orchestrator
from utils.llm import CompletionClient, RateLimiter


def cmd_build(args):
    """Run the full pipeline for one request."""
    client = CompletionClient(limiter=RateLimiter())
    orchestrator = Orchestrator(client)
    run = orchestrator.run(args.prompt)

    config = run.final_configuration
    print(f"Run:      {run.id}")
    print(f"Mode:     {run.mode.value}")
    print(f"Status:   {run.status.value}")
    print(f"Stages:   {len(run.workflow_log)} "
          f"({sum(1 for r in run.workflow_log if r.used_fallback)} used fallback text)")
    if config is not None:
        print(f"Agent:    {config.name}")
        print(f"Skills:   {', '.join(config.capabilities.skills)}")
        print(f"Deploy:   {config.deployment.status}"
              + (f" -> {config.deployment.url}" if config.deployment.url else ""))

    if run.file_set is not None:
        if args.out:
            os.makedirs(args.out, exist_ok=True)
            write_files(run.file_set, args.out)
            print(f"\nWrote {len(run.file_set)} file(s) to {args.out}:")
        else:
            print(f"\nGenerated {len(run.file_set)} file(s):")
        for path in run.file_set.paths():
            print(f"  {path}")

    if args.verbose:
        print("\n--- Transcript ---")
        print(run.transcript.strip())

    if run.status.value == "failed":
        sys.exit(1)


def cmd_stages(args):
    print("Pipeline stages:")
    for i, stage in enumerate(STAGE_ORDER, 1):
        info = STAGE_INFO[stage]
        print(f"  {i:2d}. {stage.value:20s} {info['name']} - {info['description']}")


def cmd_status(args):
    client = CompletionClient()
    if client.is_available():
        print(f"Completion backend: available (model {client.model})")
    else:
        print(f"Completion backend: unavailable, set {DEFAULTS['completion_key_env']} "
              "(runs will use demo mode)")
    token = DEFAULTS["deploy_token_env"]
    print(f"Deployment token:   {'set' if os.environ.get(token) else f'not set ({token})'}")


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(
        prog="agentforge",
        description="Build and deploy a chat agent from a natural language request",
    )
    subparsers = parser.add_subparsers(dest="command")

    build_parser = subparsers.add_parser("build", help="Run the ten-stage build pipeline")
    build_parser.add_argument("--prompt", required=True, help="Natural language request")
    build_parser.add_argument("--out", help="Write the generated files to this directory")
    build_parser.add_argument("--verbose", action="store_true",
                              help="Print the full stage transcript and debug logs")

    subparsers.add_parser("stages", help="List the pipeline stages")
    subparsers.add_parser("status", help="Check completion and deployment credentials")

    args = parser.parse_args()

    verbose = getattr(args, "verbose", False)
    logging.basicConfig(
        level="DEBUG" if verbose else os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
    )

    if args.command == "build":
        cmd_build(args)
    elif args.command == "stages":
        cmd_stages(args)
    elif args.command == "status":
        cmd_status(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
