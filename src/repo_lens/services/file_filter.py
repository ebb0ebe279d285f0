"""File filtering — decide which tree entries are candidates for ranking."""

from __future__ import annotations

from repo_lens.domain.entities import FileNode

# Matched as substrings of the full path, so ``frontend/build/x.js`` and
# ``rebuild/x.js`` are both excluded.
EXCLUDED_PATH_FRAGMENTS: tuple[str, ...] = (
    "node_modules/",
    ".git/",
    "dist/",
    "build/",
)

MAX_FILE_SIZE_BYTES = 50_000

# Static extension → language table used for fetched files.
EXTENSION_LANGUAGES: dict[str, str] = {
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "js": "JavaScript",
    "jsx": "JavaScript",
    "py": "Python",
    "rs": "Rust",
    "go": "Go",
    "java": "Java",
    "rb": "Ruby",
    "php": "PHP",
    "cpp": "C++",
    "c": "C",
    "cs": "C#",
    "swift": "Swift",
    "kt": "Kotlin",
}


def filename(path: str) -> str:
    return path.rsplit("/", maxsplit=1)[-1]


def extension(path: str) -> str:
    """Text after the last ``.`` of the filename, case preserved ('' if none)."""
    name = filename(path)
    if "." not in name:
        return ""
    return name.rsplit(".", maxsplit=1)[-1]


def detect_language(path: str) -> str | None:
    return EXTENSION_LANGUAGES.get(extension(path))


def should_skip(node: FileNode, max_size_bytes: int = MAX_FILE_SIZE_BYTES) -> bool:
    """Return *True* if the node can never be selected."""
    if node.type != "blob":
        return True
    if any(fragment in node.path for fragment in EXCLUDED_PATH_FRAGMENTS):
        return True
    return node.size >= max_size_bytes


def filter_candidates(
    nodes: list[FileNode] | tuple[FileNode, ...],
    max_size_bytes: int = MAX_FILE_SIZE_BYTES,
) -> list[FileNode]:
    """Keep the rankable blobs, preserving tree order."""
    return [node for node in nodes if not should_skip(node, max_size_bytes)]
