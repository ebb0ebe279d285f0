"""File-importance ranking.

Each candidate gets an additive integer score from filename heuristics, a
shallow-path bonus and a bonus for matching the repository's dominant
language.  Scores may be negative.  Ordering is a stable descending sort,
so ties keep tree order and re-runs are deterministic.
"""

from __future__ import annotations

from repo_lens.domain.entities import FileNode, RankedFile
from repo_lens.services.file_filter import (
    MAX_FILE_SIZE_BYTES,
    extension,
    filename,
    filter_candidates,
)

DEFAULT_LIMIT = 20

_ENTRY_PREFIXES: tuple[str, ...] = ("index", "main", "app", "server", "cli", "core", "init")
_CONFIG_MARKERS: tuple[str, ...] = (
    "config", ".config", "settings", "setup", "webpack", "vite", "rollup", "tsconfig", "jsconfig",
)
_DATA_MARKERS: tuple[str, ...] = ("db", "database", "model", "schema", "migration")

LANGUAGE_EXTENSIONS: dict[str, frozenset[str]] = {
    "TypeScript": frozenset({"ts", "tsx"}),
    "JavaScript": frozenset({"js", "jsx"}),
    "Python": frozenset({"py"}),
    "Rust": frozenset({"rs"}),
    "Go": frozenset({"go"}),
    "C++": frozenset({"cpp", "cc", "hpp"}),
    "Java": frozenset({"java"}),
}

# (predicate over lower-cased filename, weight)
_NAME_RULES = (
    (lambda name: name.startswith(_ENTRY_PREFIXES), 50),
    (lambda name: any(marker in name for marker in _CONFIG_MARKERS), 40),
    (lambda name: "route" in name, 35),
    (lambda name: "auth" in name, 35),
    (lambda name: any(marker in name for marker in _DATA_MARKERS), 30),
    (lambda name: "api" in name, 25),
)


def score_file(path: str, language: str | None = None) -> int:
    """Return the importance score of a single path."""
    name = filename(path)
    lower = name.lower()
    ext = extension(path)

    score = sum(weight for matches, weight in _NAME_RULES if matches(lower))

    if len(path.split("/")) <= 2:
        score += 15
    if language and ext in LANGUAGE_EXTENSIONS.get(language, frozenset()):
        score += 10
    # Case-sensitive on purpose: "Test" / "Spec" in a filename do not count.
    if "test" in name or "spec" in name or "/__tests__/" in path:
        score -= 20
    if ext in ("md", "mdx"):
        score -= 10

    return score


def rank_files(
    tree: list[FileNode] | tuple[FileNode, ...],
    language: str | None = None,
    limit: int = DEFAULT_LIMIT,
    max_file_size: int = MAX_FILE_SIZE_BYTES,
) -> list[RankedFile]:
    """Filter *tree*, score the survivors and return the top *limit*."""
    ranked = [
        RankedFile(path=node.path, size=node.size, score=score_file(node.path, language))
        for node in filter_candidates(tree, max_file_size)
    ]
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked[: max(limit, 0)]
