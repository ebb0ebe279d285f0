"""README generation from a cached analysis, and pushing it back to GitHub."""

from __future__ import annotations

import json
import logging
from urllib.parse import quote

from repo_lens.domain.entities import CachedAnalysis, PushResult, ReadmeResult, RepoContext
from repo_lens.domain.exceptions import GitHubAuthRequiredError
from repo_lens.domain.ports.llm_gateway import LlmGateway
from repo_lens.domain.ports.repo_fetcher import RepoFetcher
from repo_lens.domain.value_objects import GitHubUrl

logger = logging.getLogger(__name__)

README_PATH = "README.md"
DEFAULT_COMMIT_MESSAGE = "docs: Update README via RepoLens"

SECTIONS: tuple[str, ...] = ("Overview", "Tech Stack", "Installation", "Usage", "Contributing", "License")

README_SYSTEM_PROMPT = """\
You are a technical writer. Write the body of a professional README.md: \
usage examples, an API section if routes are present, and any configuration \
the project needs.  Do not include a title, badges, installation, \
contributing or license sections; those are added separately.  Return \
markdown only.
"""

_PYTHON_MANIFESTS = frozenset({"requirements.txt", "pyproject.toml", "setup.py"})

# Path fragment → (category, technology, description)
_FRAMEWORK_HINTS: tuple[tuple[str, str, str, str], ...] = (
    ("react", "Framework", "React", "UI library"),
    ("next", "Framework", "Next.js", "React framework"),
    ("vue", "Framework", "Vue.js", "Progressive framework"),
    ("angular", "Framework", "Angular", "Platform framework"),
    ("express", "Backend", "Express.js", "Web framework"),
    ("fastapi", "Backend", "FastAPI", "Python API framework"),
    ("django", "Backend", "Django", "Python web framework"),
    ("tailwind", "Styling", "Tailwind CSS", "Utility-first CSS"),
    ("docker", "DevOps", "Docker", "Containerization"),
)


# ── Sections ────────────────────────────────────────────────────────────────


def generate_badges(context: RepoContext) -> list[str]:
    """shields.io badges for language, stars, license, last commit and issues."""
    slug = f"{context.owner}/{context.repo}"
    badges: list[str] = []
    if context.metadata.language:
        badges.append(
            f"![Language](https://img.shields.io/badge/language-{quote(context.metadata.language)}-blue)"
        )
    badges.append(f"![Stars](https://img.shields.io/github/stars/{slug}?style=social)")
    if context.metadata.license or any("license" in node.path.lower() for node in context.file_tree):
        badges.append(f"![License](https://img.shields.io/github/license/{slug})")
    badges.append(f"![Last Commit](https://img.shields.io/github/last-commit/{slug})")
    badges.append(f"![Issues](https://img.shields.io/github/issues/{slug})")
    return badges


def _clone_step(context: RepoContext) -> str:
    return (
        "1. Clone the repository:\n"
        "```bash\n"
        f"git clone https://github.com/{context.owner}/{context.repo}.git\n"
        f"cd {context.repo}\n"
        "```"
    )


def _node_commands(context: RepoContext) -> tuple[str, str]:
    paths = {node.path for node in context.file_tree}
    tool = "yarn" if "yarn.lock" in paths else "pnpm" if "pnpm-lock.yaml" in paths else "npm"

    scripts: dict[str, str] = {}
    if context.package_file is not None:
        try:
            data = json.loads(context.package_file.content)
        except ValueError:
            data = {}
        if isinstance(data, dict) and isinstance(data.get("scripts"), dict):
            scripts = data["scripts"]

    if "dev" in scripts:
        run = f"{tool} run dev"
    elif "start" in scripts:
        run = f"{tool} start"
    else:
        run = "npm run dev"
    return f"{tool} install", run


def generate_install_section(context: RepoContext) -> str:
    kind = context.package_file.type if context.package_file else None
    steps = [_clone_step(context)]

    if kind == "package.json":
        install, run = _node_commands(context)
        steps += [
            f"2. Install dependencies:\n```bash\n{install}\n```",
            f"3. Start the development server:\n```bash\n{run}\n```",
        ]
    elif kind in _PYTHON_MANIFESTS:
        install = "pip install -r requirements.txt" if kind == "requirements.txt" else "pip install ."
        steps += [
            "2. Create a virtual environment:\n```bash\n"
            "python -m venv venv\nsource venv/bin/activate  # On Windows: venv\\Scripts\\activate\n```",
            f"3. Install dependencies:\n```bash\n{install}\n```",
        ]
    elif kind == "Cargo.toml":
        steps += [
            "2. Build the project:\n```bash\ncargo build --release\n```",
            "3. Run the application:\n```bash\ncargo run\n```",
        ]
    else:
        steps.append("2. Follow the project's setup instructions in the documentation.")

    return "## Installation\n\n" + "\n\n".join(steps)


def generate_tech_stack(context: RepoContext) -> str:
    rows: list[str] = []
    if context.metadata.language:
        rows.append(f"| Language | {context.metadata.language} | Primary programming language |")
    for name in list(context.languages)[:5]:
        if name != context.metadata.language:
            rows.append(f"| Language | {name} | Also used |")
    if context.package_file is not None:
        rows.append(f"| Packaging | {context.package_file.type} | Dependency manifest |")

    paths = [node.path.lower() for node in context.file_tree]
    deps = {dep.lower() for dep in context.package_file.dependencies} if context.package_file else set()
    for fragment, category, tech, description in _FRAMEWORK_HINTS:
        if any(fragment in dep for dep in deps) or any(fragment in path for path in paths):
            rows.append(f"| {category} | {tech} | {description} |")

    if not rows:
        return ""
    return (
        "## Tech Stack\n\n"
        "| Category | Technology | Description |\n"
        "|----------|------------|-------------|\n" + "\n".join(rows)
    )


def template_body(context: RepoContext) -> str:
    return (
        "## Usage\n\n"
        "```bash\n"
        "# Clone the repository\n"
        f"git clone https://github.com/{context.owner}/{context.repo}.git\n"
        f"cd {context.repo}\n"
        "```\n\n"
        "Refer to the installation section above for setup instructions."
    )


def _license_section(context: RepoContext) -> str:
    license_id = context.metadata.license
    if license_id and license_id != "NOASSERTION":
        text = f"This project is licensed under the {license_id} License - see the [LICENSE](LICENSE) file for details."
    else:
        text = "No license has been specified for this project."
    return f"## License\n\n{text}"


def _readme_prompt(cached: CachedAnalysis) -> str:
    context = cached.context
    tree = "\n".join(node.path for node in context.file_tree if node.type == "blob")
    tree_top = "\n".join(tree.splitlines()[:30])
    deps = ", ".join(context.package_file.dependencies) if context.package_file else "None detected"
    return (
        f"Repository: {context.metadata.full_name}\n"
        f"Description: {context.metadata.description or 'N/A'}\n"
        f"Explanation: {cached.analysis.explanation}\n\n"
        f"File Tree (top 30):\n{tree_top}\n\n"
        f"Dependencies: {deps}"
    )


# ── Generator ───────────────────────────────────────────────────────────────


class ReadmeGenerator:
    """Assemble a README from deterministic sections plus an LLM-written body."""

    async def generate(
        self,
        cached: CachedAnalysis,
        llm: LlmGateway | None,
        include_badges: bool = True,
        include_banner: bool = True,
        include_toc: bool = True,
    ) -> ReadmeResult:
        context = cached.context
        logger.info("Generating README for %s", context.repo_id)

        badges = generate_badges(context) if include_badges else []
        body = await self._body(cached, llm)

        parts: list[str] = []
        if include_banner:
            parts += ['<div align="center">', "", f"# {context.repo}", ""]
            if context.metadata.description:
                parts += [context.metadata.description, ""]
            if badges:
                parts += [" ".join(badges), ""]
            parts += ["</div>", ""]
        else:
            parts += [f"# {context.repo}", ""]
            if badges:
                parts += [" ".join(badges), ""]

        if include_toc:
            parts += ["## Table of Contents", ""]
            parts += [f"- [{name}](#{name.lower().replace(' ', '-')})" for name in SECTIONS]
            parts.append("")

        parts += ["## Overview", "", cached.analysis.explanation[:1000], ""]

        tech_stack = generate_tech_stack(context)
        if tech_stack:
            parts += [tech_stack, ""]

        parts += [generate_install_section(context), "", body, ""]
        parts += [
            "## Contributing",
            "",
            "Contributions are welcome! Please feel free to submit a Pull Request. "
            "For major changes, please open an issue first to discuss what you would like to change.",
            "",
            _license_section(context),
            "",
        ]

        return ReadmeResult(markdown="\n".join(parts), badges=tuple(badges), sections=SECTIONS)

    async def _body(self, cached: CachedAnalysis, llm: LlmGateway | None) -> str:
        if llm is None:
            return template_body(cached.context)
        try:
            response = await llm.generate(
                _readme_prompt(cached),
                system_prompt=README_SYSTEM_PROMPT,
                temperature=0.6,
                max_tokens=3000,
            )
        except Exception as exc:
            logger.warning("README body generation failed — using template: %s", exc)
            return template_body(cached.context)
        return response.content.strip() or template_body(cached.context)


# ── Push ────────────────────────────────────────────────────────────────────


async def push_readme(
    fetcher: RepoFetcher,
    url: GitHubUrl,
    content: str,
    *,
    token: str | None,
    message: str = DEFAULT_COMMIT_MESSAGE,
    branch: str = "main",
) -> PushResult:
    """Create or update ``README.md`` on *branch* with the caller's token."""
    if not token:
        raise GitHubAuthRequiredError("A GitHub token is required to push a README.")

    sha = await fetcher.get_file_sha(url, README_PATH, branch, token)
    logger.info(
        "%s README.md on %s@%s", "Updating" if sha else "Creating", url.full_name, branch
    )
    return await fetcher.put_file(
        url,
        README_PATH,
        content,
        message=message,
        branch=branch,
        token=token,
        sha=sha,
    )
