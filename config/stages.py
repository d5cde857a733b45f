"""Pipeline stage definitions: fixed order, display names and role blurbs."""

from enum import Enum


class PipelineStage(str, Enum):
    STRATEGIZE = "strategize"
    ANALYZE_REQUIREMENTS = "analyze-requirements"
    CREATE_SPEC = "create-spec"
    TEST_SPEC = "test-spec"
    VALIDATE_SPEC = "validate-spec"
    OPTIMIZE = "optimize"
    DOCUMENT = "document"
    SECURE_REVIEW = "secure-review"
    PERFORMANCE_REVIEW = "performance-review"
    ARCHITECTURE_SETUP = "architecture-setup"


# Execution order. Every run walks this tuple front to back, no skipping.
STAGE_ORDER = tuple(PipelineStage)

# Stages recorded when the availability probe short-circuits into demo mode.
DEMO_STAGES = (PipelineStage.ANALYZE_REQUIREMENTS, PipelineStage.CREATE_SPEC)

STAGE_INFO = {
    PipelineStage.STRATEGIZE: {
        "name": "Strategic Planner",
        "description": "Plans the overall agent generation strategy",
    },
    PipelineStage.ANALYZE_REQUIREMENTS: {
        "name": "Requirement Analyzer",
        "description": "Extracts structured requirements from the plan",
    },
    PipelineStage.CREATE_SPEC: {
        "name": "Agent Creator",
        "description": "Writes the agent specification: personality, capabilities, design",
    },
    PipelineStage.TEST_SPEC: {
        "name": "Quality Tester",
        "description": "Tests the specification for completeness and feasibility",
    },
    PipelineStage.VALIDATE_SPEC: {
        "name": "Agent Validator",
        "description": "Validates requirement coverage and quality standards",
    },
    PipelineStage.OPTIMIZE: {
        "name": "Performance Optimizer",
        "description": "Optimizes the agent for efficiency and cost",
    },
    PipelineStage.DOCUMENT: {
        "name": "Documentation Generator",
        "description": "Produces user and technical documentation",
    },
    PipelineStage.SECURE_REVIEW: {
        "name": "Security Specialist",
        "description": "Reviews privacy, input handling and compliance",
    },
    PipelineStage.PERFORMANCE_REVIEW: {
        "name": "Performance Analyst",
        "description": "Final performance analysis and benchmarks",
    },
    PipelineStage.ARCHITECTURE_SETUP: {
        "name": "Architecture Setup Agent",
        "description": "Designs the deployment architecture for the hosting platform",
    },
}


def display_name(stage):
    return STAGE_INFO[PipelineStage(stage)]["name"]
