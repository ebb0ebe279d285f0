"""Deterministic token-budget allocator.

Uses ``tiktoken`` for exact token counting and allocates a fixed budget
across prompt sections.  Capacity a section leaves unused rolls over to the
sections after it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

import tiktoken

# ── Constants ───────────────────────────────────────────────────────────────

_ENCODING_NAME = "cl100k_base"

# Share of the usable budget per section, in fill order.  The remaining
# 5 % of the total is held back as a reserve.
_SLOT_PROPORTIONS: list[tuple[str, float]] = [
    ("overview", 0.05),
    ("package", 0.08),
    ("readme", 0.22),
    ("tree", 0.10),
    ("files", 0.55),
]

TRUNCATION_MARKER = "\n[… truncated to fit token budget]"


# ── Public helpers ──────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def _encoding() -> tiktoken.Encoding:
    return tiktoken.get_encoding(_ENCODING_NAME)


def count_tokens(text: str) -> int:
    """Return the exact token count for *text* under cl100k_base."""
    return len(_encoding().encode(text, disallowed_special=()))


def truncate_to_budget(text: str, max_tokens: int) -> str:
    """Cut *text* to at most *max_tokens* tokens plus :data:`TRUNCATION_MARKER`.

    Text already within budget is returned unchanged.  When a newline falls
    in the second half of the kept text, the cut moves back to it.
    """
    if max_tokens <= 0:
        return ""
    tokens = _encoding().encode(text, disallowed_special=())
    if len(tokens) <= max_tokens:
        return text

    kept = _encoding().decode(tokens[:max_tokens])
    newline = kept.rfind("\n")
    if newline > len(kept) // 2:
        kept = kept[: newline + 1]
    return kept + TRUNCATION_MARKER


# ── Budget allocation ───────────────────────────────────────────────────────


@dataclass
class BudgetSlot:
    """One section within the token budget."""

    name: str
    max_tokens: int
    content: str = ""
    used_tokens: int = 0


@dataclass
class BudgetedContent:
    """Sections fitted to the budget, ready for prompt assembly."""

    slots: list[BudgetSlot] = field(default_factory=list)
    total_tokens: int = 0
    budget_limit: int = 0

    def get_slot(self, name: str) -> BudgetSlot | None:
        for slot in self.slots:
            if slot.name == name:
                return slot
        return None


def allocate(
    contents: dict[str, str],
    total_budget: int = 12_000,
) -> BudgetedContent:
    """Allocate *contents* (keyed by section name) within *total_budget* tokens.

    Parameters
    ----------
    contents:
        Mapping of ``{"overview": "...", "package": "...", "readme": "...",
        "tree": "...", "files": "..."}``.  Missing keys are empty sections.
    total_budget:
        Maximum tokens to allocate (excluding the system prompt).
    """
    usable = total_budget - int(total_budget * 0.05)

    slots: list[BudgetSlot] = []
    carry = 0

    for slot_name, proportion in _SLOT_PROPORTIONS:
        raw_text = contents.get(slot_name, "")
        slot_max = int(usable * proportion) + carry

        if not raw_text:
            slots.append(BudgetSlot(name=slot_name, max_tokens=slot_max))
            carry = slot_max
            continue

        actual_tokens = count_tokens(raw_text)
        if actual_tokens <= slot_max:
            fitted_text = raw_text
            used = actual_tokens
        else:
            fitted_text = truncate_to_budget(raw_text, slot_max)
            used = count_tokens(fitted_text)

        carry = max(slot_max - used, 0)
        slots.append(
            BudgetSlot(
                name=slot_name,
                max_tokens=slot_max,
                content=fitted_text,
                used_tokens=used,
            )
        )

    total_used = sum(s.used_tokens for s in slots)
    return BudgetedContent(slots=slots, total_tokens=total_used, budget_limit=total_budget)
