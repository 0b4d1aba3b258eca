"""
Tests for the predictor slash commands and the betting sweep loop.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from commands.predictor import PredictorCommands, parse_prediction_args
from domain.models.predictor import Prediction, PredictorBet
from services.result import Result


def _interaction(user_id=1):
    interaction = MagicMock()
    interaction.user.id = user_id
    interaction.user.name = f"user{user_id}"
    interaction.response.is_done.return_value = False
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def _sent_content(interaction):
    return interaction.followup.send.call_args.kwargs["content"]


class TestParsePredictionArgs:
    def test_multiple_entries(self):
        assert parse_prediction_args("first_ban_team1=Pudge:100, most_banned = Io : 50") == [
            {"type": "first_ban_team1", "choice": "Pudge", "betAmount": 100},
            {"type": "most_banned", "choice": "Io", "betAmount": 50},
        ]

    def test_choice_may_contain_colon(self):
        parsed = parse_prediction_args("pick_team1_core=Nature's Prophet: Treant:20")
        assert parsed[0]["choice"] == "Nature's Prophet: Treant"

    def test_trailing_comma_ignored(self):
        assert len(parse_prediction_args("most_banned=Io:50,")) == 1

    @pytest.mark.parametrize("raw", ["most_banned", "most_banned=Io", "=Io:50", "most_banned=:50", "most_banned=Io:lots"])
    def test_malformed(self, raw):
        with pytest.raises(ValueError):
            parse_prediction_args(raw)


class TestBettingSweepLoop:
    @pytest.mark.asyncio
    async def test_runs_sweep(self):
        bot = MagicMock()
        bot.betting_window_service.sweep.return_value = {
            "closed_count": 2,
            "failed_count": 0,
            "notified_matches": 1,
        }
        cog = PredictorCommands(bot)

        await cog.betting_sweep()

        bot.betting_window_service.sweep.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_sweep_error_does_not_escape(self):
        bot = MagicMock()
        bot.betting_window_service.sweep.side_effect = RuntimeError("database is locked")
        cog = PredictorCommands(bot)

        await cog.betting_sweep()

    @pytest.mark.asyncio
    async def test_skips_without_service(self):
        bot = MagicMock(spec=[])
        cog = PredictorCommands(bot)

        await cog.betting_sweep()


class TestBetCommand:
    @pytest.mark.asyncio
    async def test_places_parsed_bet(self):
        bot = MagicMock()
        bet = PredictorBet(
            bet_id=9,
            discord_id=1,
            match_id=4,
            predictions=[Prediction(type="most_banned", choice="Io", bet_amount=50, odds=2.0)],
            total_bet=50,
        )
        bot.bet_placement_service.place_bet_from_request.return_value = Result.ok(bet)
        cog = PredictorCommands(bot)
        interaction = _interaction()

        await cog.bet.callback(cog, interaction, 4, "most_banned=Io:50")

        bot.bet_placement_service.place_bet_from_request.assert_called_once_with(
            1,
            {"matchId": 4, "predictions": [{"type": "most_banned", "choice": "Io", "betAmount": 50}]},
        )
        assert "Bet #9" in _sent_content(interaction)

    @pytest.mark.asyncio
    async def test_rejection_message_relayed(self):
        bot = MagicMock()
        bot.bet_placement_service.place_bet_from_request.return_value = Result.fail(
            "Betting is closed for this match.", code="betting_closed"
        )
        cog = PredictorCommands(bot)
        interaction = _interaction()

        await cog.bet.callback(cog, interaction, 4, "most_banned=Io:50")

        assert _sent_content(interaction) == "❌ Betting is closed for this match."

    @pytest.mark.asyncio
    async def test_unparseable_input_never_reaches_service(self):
        bot = MagicMock()
        cog = PredictorCommands(bot)
        interaction = _interaction()

        await cog.bet.callback(cog, interaction, 4, "most_banned")

        bot.bet_placement_service.place_bet_from_request.assert_not_called()
        assert _sent_content(interaction).startswith("❌")


class TestResultsCommand:
    @pytest.mark.asyncio
    async def test_requires_admin(self):
        bot = MagicMock()
        cog = PredictorCommands(bot)
        interaction = _interaction()

        with patch("commands.predictor.has_admin_permission", return_value=False):
            await cog.results.callback(cog, interaction, 4, "{}")

        interaction.response.send_message.assert_awaited_once()
        bot.settlement_service.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        bot = MagicMock()
        cog = PredictorCommands(bot)
        interaction = _interaction()

        with patch("commands.predictor.has_admin_permission", return_value=True):
            await cog.results.callback(cog, interaction, 4, "{not json")

        assert "Invalid JSON" in _sent_content(interaction)
        bot.settlement_service.settle.assert_not_called()

    @pytest.mark.asyncio
    async def test_reports_settlement_summary(self):
        bot = MagicMock()
        bot.settlement_service.settle.return_value = Result.ok(
            {
                "results": {"processed_bets": 3, "winning_bets": 2, "winning_predictions": 3},
                "rewards": {
                    "total_rewards_distributed": 285.0,
                    "users_rewarded": 2,
                    "undistributed": [{"type": "most_banned", "reward_pool": 150}],
                    "notifications": {"sent": 3, "failed": 0},
                },
            }
        )
        cog = PredictorCommands(bot)
        interaction = _interaction()

        with patch("commands.predictor.has_admin_permission", return_value=True):
            await cog.results.callback(cog, interaction, 4, '{"mostBanned": "Io"}')

        bot.settlement_service.settle.assert_called_once_with(4, {"mostBanned": "Io"})
        content = _sent_content(interaction)
        assert "Bets processed: 3 (winning: 2)" in content
        assert "to 2 user(s)" in content
        assert "most_banned" in content

    @pytest.mark.asyncio
    async def test_reports_resumed_payout(self):
        bot = MagicMock()
        bot.settlement_service.settle.return_value = Result.ok(
            {
                "results": None,
                "rewards": {
                    "total_rewards_distributed": 95.0,
                    "users_rewarded": 1,
                    "undistributed": [],
                    "notifications": {"sent": 1, "failed": 0},
                },
                "resumed": True,
            }
        )
        cog = PredictorCommands(bot)
        interaction = _interaction()

        with patch("commands.predictor.has_admin_permission", return_value=True):
            await cog.results.callback(cog, interaction, 4, "{}")

        content = _sent_content(interaction)
        assert "already recorded" in content
        assert "Bets processed" not in content
        assert "to 1 user(s)" in content
