"""
Ordered keyword rules with a single first-match evaluator.

Rule precedence is the list order, so the order is data that tests can read
and assert on directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, Tuple, TypeVar

S = TypeVar("S")
O = TypeVar("O")


@dataclass(frozen=True)
class Rule(Generic[S, O]):
    """A named predicate and the outcome it produces when it matches."""

    name: str
    predicate: Callable[[S], bool]
    outcome: O


def first_match(
    rules: Iterable[Rule[S, O]], subject: S, default: Optional[O] = None
) -> Tuple[Optional[str], Optional[O]]:
    """Return ``(rule_name, outcome)`` of the first matching rule, else ``(None, default)``."""
    for rule in rules:
        if rule.predicate(subject):
            return rule.name, rule.outcome
    return None, default
