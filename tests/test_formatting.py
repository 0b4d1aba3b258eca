"""Tests for formatting utilities."""

from domain.models.predictor import (
    MatchStatus,
    Prediction,
    PredictionStatus,
    PredictorBet,
    PredictorMatch,
    TeamInfo,
)
from utils.formatting import COIN_EMOTE, format_bet_lines, format_coins, format_match_line, truncate_field


class TestTruncateField:
    def test_short_text_unchanged(self):
        assert truncate_field("abc") == "abc"

    def test_long_text_truncated_with_ellipsis(self):
        result = truncate_field("x" * 2000)
        assert len(result) == 1024
        assert result.endswith("...")


class TestFormatCoins:
    def test_whole_amount_has_no_decimal(self):
        assert format_coins(190.0) == f"190 {COIN_EMOTE}"

    def test_fractional_amount_kept(self):
        assert format_coins(126.67) == f"126.67 {COIN_EMOTE}"


def test_format_match_line():
    match = PredictorMatch(
        match_id=3,
        game="dota2",
        team1=TeamInfo("Team Spirit"),
        team2=TeamInfo("Gaimin Gladiators"),
        start_time=1_750_000_000,
        status=MatchStatus.LIVE,
    )

    line = format_match_line(match)

    assert line.startswith("🔴 #3")
    assert "**Team Spirit** vs **Gaimin Gladiators**" in line
    assert "<t:1750000000:R>" in line


def test_format_bet_lines_shows_reward_for_winners():
    bet = PredictorBet(
        bet_id=1,
        discord_id=1,
        match_id=3,
        predictions=[
            Prediction("first_ban_team1", "Pudge", 100, 2.0, PredictionStatus.WON, reward=95.0),
            Prediction("most_banned", "Io", 50, 1.5, PredictionStatus.LOST),
        ],
        total_bet=150,
    )

    won, lost = format_bet_lines(bet)

    assert won.startswith("🏆")
    assert "100 @ 2.00" in won
    assert f"(+95 {COIN_EMOTE})" in won
    assert lost.startswith("❌")
    assert "(+" not in lost
