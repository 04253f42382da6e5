"""
Ordered first-match rule tables.

Most German lexical decisions in the pipeline are "the first pattern that
matches wins" (segment type, effect rating, time of day, factor type, ...).
A RuleTable keeps that priority order explicit: rules are evaluated top to
bottom and the first hit decides.
"""

import re
from dataclasses import dataclass
from re import Match, Pattern
from typing import Callable, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

PatternSpec = Union[str, Sequence[str]]


@dataclass(frozen=True)
class Rule(Generic[T]):
    """A compiled pattern group and the result it stands for."""
    patterns: Tuple[Pattern, ...]
    result: T

    def search(self, text: str) -> Optional[Match]:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                return match
        return None


def compile_patterns(source: PatternSpec, flags: int = re.IGNORECASE) -> Tuple[Pattern, ...]:
    """Compile one regex or a group of alternative regexes."""
    if isinstance(source, str):
        source = (source,)
    return tuple(re.compile(p, flags) for p in source)


def matches_any(patterns: Iterable[Pattern], text: str) -> bool:
    return any(p.search(text) for p in patterns)


class RuleTable(Generic[T]):
    """
    Evaluate ``(patterns, result)`` pairs in order, first match wins.

    Example:
        table = RuleTable([("sehr gut|super", "sehr_gut"), ("gut", "gut")])
        table.first_match("hat super geholfen")  # -> "sehr_gut"
    """

    def __init__(self, rules: Iterable[Tuple[PatternSpec, T]], flags: int = re.IGNORECASE):
        self._rules: List[Rule[T]] = [
            Rule(patterns=compile_patterns(source, flags), result=result)
            for source, result in rules
        ]

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def results(self) -> List[T]:
        """Results in priority order."""
        return [rule.result for rule in self._rules]

    def first_match(self, text: str, default: Optional[T] = None) -> Optional[T]:
        hit = self.first_match_with(text)
        return hit[0] if hit else default

    def first_match_with(self, text: str) -> Optional[Tuple[T, Match]]:
        """Return the winning result together with the regex match that decided it."""
        if not text:
            return None
        for rule in self._rules:
            match = rule.search(text)
            if match:
                return rule.result, match
        return None

    def all_matches(self, text: str) -> List[T]:
        """Every result whose patterns match, in priority order."""
        if not text:
            return []
        return [rule.result for rule in self._rules if rule.search(text)]


def first_match(
    rules: Iterable[Tuple[Callable[[str], bool], T]],
    text: str,
    default: Optional[T] = None,
) -> Optional[T]:
    """Generic predicate form of the combinator, for rules that are not plain regexes."""
    for predicate, result in rules:
        if predicate(text):
            return result
    return default
