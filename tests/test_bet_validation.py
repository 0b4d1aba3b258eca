"""
Tests for bet request parsing and admission checks.
"""

import pytest

from domain.models.predictor import MatchStatus
from services.bet_validation import parse_bet_request

NOW = 1_750_000_000


def _pred(ptype="first_ban_team1", choice="Pudge", amount=100):
    return {"type": ptype, "choice": choice, "bet_amount": amount}


class TestParseBetRequest:
    def test_camel_case_request(self):
        result = parse_bet_request(
            {"matchId": "7", "predictions": [{"type": "most_banned", "choice": "Io", "betAmount": 50}]}
        )

        assert result.success
        assert result.value == {
            "match_id": 7,
            "predictions": [{"type": "most_banned", "choice": "Io", "bet_amount": 50}],
        }

    def test_snake_case_request(self):
        result = parse_bet_request({"match_id": 3, "predictions": [_pred()]})
        assert result.success
        assert result.value["match_id"] == 3

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {"predictions": [_pred()]},
            {"matchId": 1},
            {"matchId": 1, "predictions": []},
            {"matchId": True, "predictions": [_pred()]},
            {"matchId": "abc", "predictions": [_pred()]},
        ],
    )
    def test_missing_or_malformed_top_level(self, payload):
        result = parse_bet_request(payload)
        assert not result.success
        assert result.error_code == "invalid_data"

    @pytest.mark.parametrize(
        "prediction",
        [
            "first_ban_team1",
            {"choice": "Pudge", "betAmount": 10},
            {"type": "first_ban_team1", "betAmount": 10},
            {"type": "first_ban_team1", "choice": "Pudge"},
            {"type": "first_ban_team1", "choice": "Pudge", "betAmount": 10.5},
            {"type": "first_ban_team1", "choice": "Pudge", "betAmount": "10"},
            {"type": "first_ban_team1", "choice": "Pudge", "betAmount": True},
        ],
    )
    def test_malformed_prediction(self, prediction):
        result = parse_bet_request({"matchId": 1, "predictions": [prediction]})
        assert not result.success
        assert result.error_code == "invalid_prediction_data"

    def test_duplicate_type_rejected(self):
        result = parse_bet_request({"matchId": 1, "predictions": [_pred(), _pred(choice="Io")]})
        assert not result.success
        assert result.error_code == "invalid_prediction_data"


class TestBetValidator:
    def test_valid_bet_returns_total(self, bet_validator, create_match, register_player):
        match_id = create_match()
        register_player(1)

        result = bet_validator.validate(
            1, match_id, [_pred(amount=100), _pred("most_banned", "Io", 50)], now=NOW
        )

        assert result.success
        assert result.value == 150

    def test_match_not_found(self, bet_validator, register_player):
        register_player(1)
        result = bet_validator.validate(1, 404, [_pred()], now=NOW)
        assert result.error_code == "match_not_found"

    def test_match_not_upcoming(self, bet_validator, match_repository, create_match, register_player):
        match_id = create_match()
        register_player(1)
        match_repository.transition_status(
            match_id, MatchStatus.UPCOMING, MatchStatus.LIVE, close_types=True
        )

        result = bet_validator.validate(1, match_id, [_pred()], now=NOW)

        assert result.error_code == "betting_closed"

    @pytest.mark.parametrize("starts_in", [300, 299, 60, 0, -600])
    def test_inside_close_lead(self, bet_validator, create_match, register_player, starts_in):
        match_id = create_match(starts_in=starts_in)
        register_player(1)

        result = bet_validator.validate(1, match_id, [_pred()], now=NOW)

        assert result.error_code == "betting_closed"

    def test_just_outside_close_lead_is_accepted(self, bet_validator, create_match, register_player):
        match_id = create_match(starts_in=301)
        register_player(1)
        assert bet_validator.validate(1, match_id, [_pred()], now=NOW).success

    def test_no_predictions(self, bet_validator, create_match, register_player):
        match_id = create_match()
        register_player(1)
        result = bet_validator.validate(1, match_id, [], now=NOW)
        assert result.error_code == "no_predictions"

    @pytest.mark.parametrize("amount", [0, 9, 10001, -5])
    def test_amount_out_of_bounds(self, bet_validator, create_match, register_player, amount):
        match_id = create_match()
        register_player(1, balance=100000)

        result = bet_validator.validate(1, match_id, [_pred(amount=amount)], now=NOW)

        assert result.error_code == "invalid_bet_amount"
        assert "10" in result.error and "10000" in result.error

    @pytest.mark.parametrize("amount", [10, 10000])
    def test_amount_bounds_inclusive(self, bet_validator, create_match, register_player, amount):
        match_id = create_match()
        register_player(1, balance=100000)
        assert bet_validator.validate(1, match_id, [_pred(amount=amount)], now=NOW).success

    def test_unknown_prediction_type(self, bet_validator, create_match, register_player):
        match_id = create_match()
        register_player(1)
        result = bet_validator.validate(1, match_id, [_pred("last_pick_team1")], now=NOW)
        assert result.error_code == "invalid_prediction_type"

    def test_closed_prediction_type(
        self, bet_validator, match_repository, create_match, register_player
    ):
        match_id = create_match()
        register_player(1)
        with match_repository.connection() as conn:
            conn.execute(
                "UPDATE prediction_types SET closed = 1 WHERE match_id = ? AND type = ?",
                (match_id, "most_banned"),
            )

        result = bet_validator.validate(1, match_id, [_pred("most_banned", "Io")], now=NOW)

        assert result.error_code == "betting_closed"
        # Other types stay open
        assert bet_validator.validate(1, match_id, [_pred()], now=NOW).success

    def test_invalid_choice_lists_options(self, bet_validator, create_match, register_player):
        match_id = create_match()
        register_player(1)

        result = bet_validator.validate(1, match_id, [_pred(choice="Invoker")], now=NOW)

        assert result.error_code == "invalid_choice"
        assert "Pudge, Io, Tinker" in result.error

    def test_player_not_found(self, bet_validator, create_match):
        match_id = create_match()
        result = bet_validator.validate(42, match_id, [_pred()], now=NOW)
        assert result.error_code == "player_not_found"

    def test_insufficient_funds_uses_total(self, bet_validator, create_match, register_player):
        match_id = create_match()
        register_player(1, balance=120)

        result = bet_validator.validate(
            1, match_id, [_pred(amount=100), _pred("most_banned", "Io", 50)], now=NOW
        )

        assert result.error_code == "insufficient_funds"

    def test_duplicate_bet(self, bet_validator, create_match, register_player, place):
        match_id = create_match()
        register_player(1)
        assert place(1, match_id, ("first_ban_team1", "Pudge", 100)).success

        result = bet_validator.validate(1, match_id, [_pred("most_banned", "Io", 50)], now=NOW)

        assert result.error_code == "duplicate_bet"

    def test_window_checked_before_amounts(self, bet_validator, create_match, register_player):
        match_id = create_match(starts_in=60)
        register_player(1)

        result = bet_validator.validate(1, match_id, [_pred(amount=1)], now=NOW)

        assert result.error_code == "betting_closed"

    def test_amounts_checked_before_balance(self, bet_validator, create_match, register_player):
        match_id = create_match()
        register_player(1, balance=0)

        result = bet_validator.validate(1, match_id, [_pred(amount=5)], now=NOW)

        assert result.error_code == "invalid_bet_amount"
