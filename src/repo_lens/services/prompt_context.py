"""Prompt context — renders a ``RepoContext`` into budgeted prompt text.

This is the final transformation before repository data enters a prompt.
"""

from __future__ import annotations

from repo_lens.domain.entities import RepoContext
from repo_lens.services.token_budget import BudgetedContent, allocate

_HEADERS = {
    "overview": "## Repository",
    "package": "## Dependencies",
    "readme": "## README",
    "tree": "## File Tree",
    "files": "## Important Files",
}

_TREE_LINE_LIMIT = 200
_PACKAGE_DEPENDENCY_LIMIT = 20


def render_overview(context: RepoContext) -> str:
    meta = context.metadata
    languages = ", ".join(
        f"{name} ({round(size / 1024)}KB)"
        for name, size in sorted(context.languages.items(), key=lambda item: -item[1])
    )
    lines = [
        f"Repository: {meta.full_name}",
        f"Description: {meta.description or 'N/A'}",
        f"Language: {meta.language or 'N/A'}",
        f"Stars: {meta.stars}",
        f"Forks: {meta.forks}",
        f"License: {meta.license or 'N/A'}",
        f"Topics: {', '.join(meta.topics) or 'N/A'}",
        f"Languages: {languages or 'N/A'}",
        f"File Count: {context.file_count}",
        f"Contributors: {context.contributors}",
        f"Last Commit: {context.last_commit.date or 'N/A'}",
    ]
    return "\n".join(lines)


def render_package(context: RepoContext) -> str:
    package = context.package_file
    if package is None:
        return "No package file detected"
    deps = ", ".join(package.dependencies[:_PACKAGE_DEPENDENCY_LIMIT])
    return f"Package File: {package.type} ({package.path})\nDependencies: {deps or 'none listed'}"


def render_tree(context: RepoContext) -> str:
    """Flat listing of blob paths, capped to keep it compact."""
    paths = [node.path for node in context.file_tree if node.type == "blob"]
    if len(paths) > _TREE_LINE_LIMIT:
        hidden = len(paths) - _TREE_LINE_LIMIT
        paths = paths[:_TREE_LINE_LIMIT] + [f"… and {hidden} more files"]
    return "\n".join(paths)


def render_files(context: RepoContext) -> str:
    parts = [
        f"### {f.path} ({f.language or 'unknown'})\n\n{f.content}"
        for f in context.important_files
    ]
    return "\n\n".join(parts)


def budget_context(context: RepoContext, max_tokens: int = 12_000) -> BudgetedContent:
    return allocate(
        {
            "overview": render_overview(context),
            "package": render_package(context),
            "readme": context.readme,
            "tree": render_tree(context),
            "files": render_files(context),
        },
        total_budget=max_tokens,
    )


def assemble(budget: BudgetedContent) -> str:
    """Combine all non-empty budget slots into a single structured context block."""
    sections: list[str] = []
    for slot in budget.slots:
        if not slot.content:
            continue
        header = _HEADERS.get(slot.name, f"## {slot.name.title()}")
        sections.append(f"{header}\n\n{slot.content}")
    return "\n\n---\n\n".join(sections)


def build_context_prompt(context: RepoContext, max_tokens: int = 12_000) -> str:
    return assemble(budget_context(context, max_tokens))
