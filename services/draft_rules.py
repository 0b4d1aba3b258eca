"""
Rule registry deciding whether a prediction won, given the draft results.

A rule is looked up by exact type tag first, then by the longest registered
prefix. Tags with no rule resolve to lost.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from domain.models.draft_results import DraftResults

logger = logging.getLogger("predictor_bot.services.draft_rules")

# (results, type_tag, choice) -> won?
Resolver = Callable[[DraftResults, str, str], bool]


class DraftRuleRegistry:
    """Maps prediction type tags (exact or by prefix) to resolver callables."""

    def __init__(self):
        self._exact: dict[str, Resolver] = {}
        self._prefixes: list[tuple[str, Resolver]] = []

    def register_exact(self, type_tag: str, resolver: Resolver) -> None:
        self._exact[type_tag] = resolver

    def register_prefix(self, prefix: str, resolver: Resolver) -> None:
        self._prefixes = [(p, r) for p, r in self._prefixes if p != prefix]
        self._prefixes.append((prefix, resolver))
        self._prefixes.sort(key=lambda item: len(item[0]), reverse=True)

    def find(self, type_tag: str) -> Resolver | None:
        """Return the resolver for a tag, or None if no rule covers it."""
        resolver = self._exact.get(type_tag)
        if resolver is not None:
            return resolver
        for prefix, prefix_resolver in self._prefixes:
            if type_tag.startswith(prefix):
                return prefix_resolver
        return None

    def resolve(self, results: DraftResults, type_tag: str, choice: str) -> bool:
        """True if the prediction (type_tag, choice) won under results."""
        resolver = self.find(type_tag)
        if resolver is None:
            logger.debug(f"No outcome rule for prediction type {type_tag}; resolving as lost")
            return False
        return resolver(results, type_tag, choice)


def _equals(getter: Callable[[DraftResults], str | None]) -> Resolver:
    def resolver(results: DraftResults, type_tag: str, choice: str) -> bool:
        expected = getter(results)
        return expected is not None and choice == expected

    return resolver


def _member_of(getter: Callable[[DraftResults], tuple[str, ...]]) -> Resolver:
    def resolver(results: DraftResults, type_tag: str, choice: str) -> bool:
        return choice in getter(results)

    return resolver


def build_default_rules() -> DraftRuleRegistry:
    """Registry for the standard draft prediction types."""
    registry = DraftRuleRegistry()
    registry.register_exact("first_ban_team1", _equals(lambda r: r.first_ban.team1))
    registry.register_exact("first_ban_team2", _equals(lambda r: r.first_ban.team2))
    registry.register_exact("first_pick_team1", _equals(lambda r: r.first_pick.team1))
    registry.register_exact("first_pick_team2", _equals(lambda r: r.first_pick.team2))
    registry.register_exact("most_banned", _equals(lambda r: r.most_banned))
    registry.register_prefix("pick_team1_", _member_of(lambda r: r.picks_team1))
    registry.register_prefix("pick_team2_", _member_of(lambda r: r.picks_team2))
    return registry
