"""Keyword lexicons and small text helpers shared by the heuristic paths."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

_DOLLAR_AMOUNT = re.compile(r"\$\s*(\d[\d,]*(?:\.\d+)?)")


class Lexicon:
    """
    Case-insensitive keyword set.

    Terms match at a word start, so "thank" matches "thanks" while "sue" does
    not match "issue". Extra raw regex patterns can cover phrasings a plain
    term list cannot.
    """

    def __init__(self, terms: Sequence[str], patterns: Iterable[str] = ()):
        self.terms = tuple(terms)
        self._term_res = [re.compile(r"\b" + re.escape(term), re.IGNORECASE) for term in self.terms]
        self._pattern_res = [re.compile(p, re.IGNORECASE) for p in patterns]

    def found(self, text: str) -> List[str]:
        """Return every term (and matched pattern text) present in text."""
        hits = [term for term, rx in zip(self.terms, self._term_res) if rx.search(text)]
        for rx in self._pattern_res:
            match = rx.search(text)
            if match:
                hits.append(match.group(0).lower())
        return hits

    def matches(self, text: str) -> bool:
        return any(rx.search(text) for rx in self._term_res) or any(
            rx.search(text) for rx in self._pattern_res
        )


def dollar_amounts(text: str) -> List[float]:
    """Every ``$NNN`` amount mentioned in text."""
    amounts = []
    for raw in _DOLLAR_AMOUNT.findall(text):
        try:
            amounts.append(float(raw.replace(",", "")))
        except ValueError:
            continue
    return amounts


def format_history(history: Sequence, limit: int = 6) -> str:
    """Render the last ``limit`` turns as ``ROLE: content`` lines."""
    return "\n".join(f"{m.role.value.upper()}: {m.content}" for m in list(history)[-limit:])
