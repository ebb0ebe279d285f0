"""Deterministic stand-ins for analysis artefacts, built from the context alone."""

from __future__ import annotations

from typing import Any

from repo_lens.domain.entities import (
    DeploymentGuide,
    DeploymentOption,
    RepoContext,
    RepoScore,
    ScoreBreakdown,
)
from repo_lens.services.response_parser import NEUTRAL_SCORE


def default_explanation(context: RepoContext) -> str:
    meta = context.metadata
    package = (
        f"Package manager: {context.package_file.type}"
        if context.package_file
        else "Package manager: Unknown"
    )
    top_languages = ", ".join(
        name for name, _ in sorted(context.languages.items(), key=lambda item: -item[1])[:3]
    )
    languages = f"Languages: {top_languages}" if top_languages else ""

    return f"""# {meta.name}

{meta.description or "A GitHub repository"}

## Overview

This is a {meta.language or "software"} project with {meta.stars} stars on GitHub.

## Tech Stack

{package}

{languages}

## Getting Started

Please refer to the README.md for setup instructions.

## License

{meta.license or "No license specified"}"""


def default_score() -> RepoScore:
    breakdown = ScoreBreakdown(
        code_quality=NEUTRAL_SCORE,
        documentation=NEUTRAL_SCORE,
        testing=NEUTRAL_SCORE,
        activity=NEUTRAL_SCORE,
        dependencies=NEUTRAL_SCORE,
        community=NEUTRAL_SCORE,
    )
    return RepoScore(
        overall=NEUTRAL_SCORE,
        breakdown=breakdown,
        details={
            "code_quality": ("Automated scoring unavailable",),
            "documentation": ("Automated scoring unavailable",),
            "testing": ("Automated scoring unavailable",),
            "activity": ("Automated scoring unavailable",),
            "dependencies": ("Automated scoring unavailable",),
            "community": ("Automated scoring unavailable",),
        },
    )


def default_architecture_diagram(context: RepoContext) -> str:
    return f"""flowchart TB
    subgraph Main["{context.metadata.name}"]
        A[App Entry]
        B[Core Logic]
        C[Data Layer]
    end
    A --> B
    B --> C"""


def default_workflow_diagram(context: RepoContext) -> str:
    return f"""sequenceDiagram
    participant User
    participant System as {context.metadata.name}
    participant GitHub as GitHub API

    User->>System: Request Analysis
    System->>GitHub: Fetch Repository
    GitHub-->>System: Return Data
    System->>System: Process & Analyze
    System-->>User: Return Results"""


def default_deployment(context: RepoContext) -> DeploymentGuide:
    is_node = context.package_file is not None and context.package_file.type == "package.json"
    free = (
        DeploymentOption(
            name="Vercel",
            description=(
                "Perfect for Next.js/React apps with zero config"
                if is_node
                else "Great for static sites and serverless functions"
            ),
            difficulty="Easy",
            estimated_time="3 minutes",
            steps=(
                "Connect GitHub repo to Vercel",
                "Auto-detect framework settings",
                "Deploy with one click",
            ),
            features=("Auto HTTPS", "Global CDN", "Preview deployments"),
            pricing="Free tier available",
        ),
        DeploymentOption(
            name="Railway",
            description="Modern platform for full-stack applications",
            difficulty="Easy",
            estimated_time="5 minutes",
            steps=("Create Railway account", "Deploy from GitHub", "Configure environment variables"),
            features=("Auto-scaling", "Database hosting", "Environment variables"),
            pricing="Free tier with $5 credit",
        ),
        DeploymentOption(
            name="Render",
            description="Unified platform for all your apps",
            difficulty="Easy",
            estimated_time="5 minutes",
            steps=("Connect repository", "Select service type", "Deploy automatically"),
            features=("Free tier", "Auto-deploy", "Managed databases"),
            pricing="Generous free tier",
        ),
    )
    paid = (
        DeploymentOption(
            name="AWS Amplify",
            description="Enterprise-grade AWS infrastructure",
            difficulty="Medium",
            estimated_time="10 minutes",
            steps=(
                "Create AWS account",
                "Connect repository",
                "Configure build settings",
                "Set up custom domain",
            ),
            features=("CI/CD", "Auth integration", "API Gateway", "Scalable"),
            pricing="Pay as you go",
        ),
        DeploymentOption(
            name="DigitalOcean App Platform",
            description="Developer-friendly with predictable pricing",
            difficulty="Medium",
            estimated_time="8 minutes",
            steps=("Create DO account", "Connect GitHub", "Configure app", "Deploy"),
            features=("Global CDN", "Auto-deploy", "Databases included"),
            pricing="From $5/month",
        ),
        DeploymentOption(
            name="Google Cloud Run",
            description="Serverless containers on GCP",
            difficulty="Advanced",
            estimated_time="15 minutes",
            steps=("Set up GCP project", "Configure Cloud Run", "Set up CI/CD pipeline", "Deploy"),
            features=("Auto-scaling", "Pay-per-use", "Global load balancing"),
            pricing="Free tier then pay-per-use",
        ),
    )
    return DeploymentGuide(free=free, paid=paid)


def default_mcp_config(context: RepoContext, provider: str = "gemini", model: str = "") -> dict[str, Any]:
    full_name = context.metadata.full_name
    return {
        "name": f"{context.metadata.name} MCP Server",
        "version": "1.0.0",
        "description": f"Model Context Protocol server for {full_name}",
        "server": {"port": 3001, "host": "localhost"},
        "capabilities": {
            "tools": [
                {
                    "name": "analyze_code",
                    "description": "Analyze code in the repository",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "filePath": {"type": "string"},
                            "question": {"type": "string"},
                        },
                        "required": ["filePath"],
                    },
                },
                {
                    "name": "get_file_content",
                    "description": "Get content of a specific file",
                    "parameters": {
                        "type": "object",
                        "properties": {"path": {"type": "string"}},
                        "required": ["path"],
                    },
                },
            ],
            "resources": [
                {
                    "name": "repo_info",
                    "description": "Basic repository information",
                    "template": f"repo://{full_name}/info",
                }
            ],
        },
        "ai": {"provider": provider, "model": model, "temperature": 0.7},
        "features": {"streaming": True, "caching": True},
    }
