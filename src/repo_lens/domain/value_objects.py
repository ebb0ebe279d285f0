"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass

from repo_lens.domain.exceptions import InvalidGitHubUrlError

_GITHUB_URL_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9\-_.]+)/(?P<repo>[A-Za-z0-9\-_.]+?)(?:\.git)?(?:[/?#].*)?$"
)
_SHORT_FORM_RE = re.compile(r"^(?P<owner>[A-Za-z0-9\-_.]+)/(?P<repo>[A-Za-z0-9\-_.]+?)(?:\.git)?$")

_CACHE_PREFIX = "analysis"


@dataclass(frozen=True, slots=True)
class GitHubUrl:
    """Validated GitHub repository reference.

    Accepts full URLs such as ``https://github.com/psf/requests`` (trailing
    paths like ``/tree/main`` are ignored) and the ``owner/repo`` short form.
    """

    owner: str
    repo: str
    raw: str

    @classmethod
    def from_string(cls, url: str) -> GitHubUrl:
        """Parse and validate a raw URL string."""
        url = url.strip()
        match = _GITHUB_URL_RE.match(url) or _SHORT_FORM_RE.match(url)
        if not match or match["owner"].lower() == "github.com":
            raise InvalidGitHubUrlError(
                f"Invalid GitHub URL: '{url}'. "
                "Expected format: https://github.com/<owner>/<repo>"
            )
        return cls(owner=match["owner"], repo=match["repo"], raw=url)

    @classmethod
    def from_parts(cls, owner: str, repo: str) -> GitHubUrl:
        return cls.from_string(f"{owner}/{repo}")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def repo_id(self) -> str:
        """Case-insensitive identity of the repository."""
        return self.full_name.lower()

    @property
    def cache_key(self) -> str:
        return f"{_CACHE_PREFIX}:{self.repo_id}"


@dataclass(frozen=True, slots=True)
class ProviderCredentials:
    """Explicit LLM configuration handed to the gateway factory per request.

    ``api_keys`` and ``models`` are keyed by provider name (``"gemini"``,
    ``"openai"``, …).  A provider without a non-empty key is unusable.
    """

    api_keys: dict[str, str]
    models: dict[str, str]
    preferred_provider: str = "gemini"

    def api_key_for(self, provider: str) -> str | None:
        return self.api_keys.get(provider) or None

    def is_configured(self, provider: str) -> bool:
        return self.api_key_for(provider) is not None
