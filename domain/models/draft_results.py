"""
Draft results payload submitted by an admin once the draft is over.

Wire shape:
    {
        "firstBan": {"team1": "...", "team2": "..."},
        "firstPick": {"team1": "...", "team2": "..."},
        "mostBanned": "...",
        "picks": {"team1": [...], "team2": [...]}
    }

Missing or malformed fields become empty values, which never match a choice.
"""

from dataclasses import dataclass, field
from typing import Any


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, str)]


@dataclass(frozen=True)
class TeamPair:
    team1: str | None = None
    team2: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TeamPair":
        if not isinstance(payload, dict):
            return cls()
        return cls(team1=_as_str(payload.get("team1")), team2=_as_str(payload.get("team2")))


@dataclass(frozen=True)
class DraftResults:
    first_ban: TeamPair = field(default_factory=TeamPair)
    first_pick: TeamPair = field(default_factory=TeamPair)
    most_banned: str | None = None
    picks_team1: tuple[str, ...] = ()
    picks_team2: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "DraftResults":
        if not isinstance(payload, dict):
            return cls()
        picks = payload.get("picks")
        if not isinstance(picks, dict):
            picks = {}
        return cls(
            first_ban=TeamPair.from_payload(payload.get("firstBan")),
            first_pick=TeamPair.from_payload(payload.get("firstPick")),
            most_banned=_as_str(payload.get("mostBanned")),
            picks_team1=tuple(_as_str_list(picks.get("team1"))),
            picks_team2=tuple(_as_str_list(picks.get("team2"))),
        )
