"""
Tests for reward calculation and payout.
"""

import sqlite3

import pytest

from domain.models.predictor import PredictionStatus

NOW = 1_750_000_000

BAN_ONLY = [{"type": "first_ban_team1", "options": ["Pudge", "Io", "Tinker"]}]


@pytest.fixture
def settle_match(match_repository, results_service):
    """Close a match and record draft results for it."""

    def _settle(match_id, results):
        match_repository.close_betting_atomic(match_id)
        processed = results_service.process_results(match_id, results)
        assert processed.success
        return processed.value

    return _settle


class TestCalculateRewards:
    def test_proportional_split(self, reward_service, create_match, register_player, place, settle_match):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        register_player(2)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        place(2, match_id, ("first_ban_team1", "Pudge", 200))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}})

        plan = reward_service.calculate_rewards(match_id).value

        assert sorted(r["reward"] for r in plan["rewards"]) == [95.0, 190.0]
        assert plan["types"] == [
            {"type": "first_ban_team1", "reward_pool": 300, "winners": 2, "distributed": 285.0}
        ]
        assert plan["undistributed"] == []

    def test_requires_completed_draft(self, reward_service, create_match):
        match_id = create_match()
        assert reward_service.calculate_rewards(match_id).error_code == "draft_not_completed"

    def test_unknown_match(self, reward_service):
        assert reward_service.calculate_rewards(999).error_code == "match_not_found"


class TestDistributeRewards:
    def test_two_winners_share_pool(
        self, reward_service, player_repository, bet_repository, create_match, register_player,
        place, settle_match
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1, balance=1000)
        register_player(2, balance=1000)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        place(2, match_id, ("first_ban_team1", "Pudge", 200))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}})

        result = reward_service.distribute_rewards(match_id, now=NOW)

        assert result.success
        assert result.value["users_rewarded"] == 2
        assert result.value["total_rewards_distributed"] == 285.0
        assert player_repository.get_balance(1) == 900 + 95
        assert player_repository.get_balance(2) == 800 + 190

        bet = bet_repository.get_user_bet_for_match(1, match_id)
        assert bet.total_reward == 95.0
        assert bet.predictions[0].reward == 95.0

    def test_no_winners_leaves_pool_undistributed(
        self, reward_service, player_repository, create_match, register_player, place, settle_match
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        register_player(2)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        place(2, match_id, ("first_ban_team1", "Io", 200))
        settle_match(match_id, {"firstBan": {"team1": "Tinker"}})

        result = reward_service.distribute_rewards(match_id, now=NOW)

        assert result.success
        assert result.value["users_rewarded"] == 0
        assert result.value["total_rewards_distributed"] == 0
        assert result.value["undistributed"] == [{"type": "first_ban_team1", "reward_pool": 300}]
        assert player_repository.get_balance(1) == 900
        assert player_repository.get_balance(2) == 800

    def test_types_settle_independently(
        self, reward_service, player_repository, create_match, register_player, place, settle_match
    ):
        match_id = create_match()
        register_player(1)
        register_player(2)
        place(1, match_id, ("first_ban_team1", "Pudge", 100), ("most_banned", "Io", 100))
        place(2, match_id, ("first_ban_team1", "Io", 100), ("most_banned", "Tinker", 300))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}, "mostBanned": "Tinker"})

        result = reward_service.distribute_rewards(match_id, now=NOW)

        # Each winner takes their own type's pool only: 200 * 0.95 and 400 * 0.95
        assert player_repository.get_balance(1) == 800 + 190
        assert player_repository.get_balance(2) == 600 + 380
        assert result.value["users_rewarded"] == 2

    def test_payout_never_exceeds_pool_after_commission(
        self, reward_service, bet_repository, match_repository, create_match, register_player,
        place, settle_match
    ):
        match_id = create_match()
        stakes = [(1, 33), (2, 67), (3, 10), (4, 41), (5, 13)]
        for discord_id, amount in stakes:
            register_player(discord_id)
            place(discord_id, match_id, ("first_ban_team1", "Pudge", amount))
        register_player(6)
        place(6, match_id, ("first_ban_team1", "Io", 29))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}})

        reward_service.distribute_rewards(match_id, now=NOW)

        pool = match_repository.get_match(match_id).get_prediction_type("first_ban_team1").reward_pool
        paid = sum(
            p.reward
            for bet in bet_repository.get_bets_for_match(match_id)
            for p in bet.predictions
            if p.type == "first_ban_team1"
        )
        assert paid <= pool * 0.95 + 0.01
        losers = [
            p
            for bet in bet_repository.get_bets_for_match(match_id)
            for p in bet.predictions
            if p.status == PredictionStatus.LOST
        ]
        assert all(p.reward == 0 for p in losers)

    def test_second_distribution_rejected(
        self, reward_service, player_repository, create_match, register_player, place, settle_match
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}})
        assert reward_service.distribute_rewards(match_id, now=NOW).success
        balance = player_repository.get_balance(1)

        again = reward_service.distribute_rewards(match_id, now=NOW + 60)

        assert again.error_code == "rewards_already_distributed"
        assert player_repository.get_balance(1) == balance

    def test_guard_holds_inside_transaction(
        self, bet_repository, create_match, register_player, place, settle_match
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}})
        bet_repository.apply_rewards_atomic(match_id, [], NOW)

        with pytest.raises(ValueError) as exc_info:
            bet_repository.apply_rewards_atomic(match_id, [], NOW)

        assert exc_info.value.code == "rewards_already_distributed"

    def test_draft_not_completed(self, reward_service, create_match):
        match_id = create_match()
        assert reward_service.distribute_rewards(match_id, now=NOW).error_code == "draft_not_completed"

    def test_result_notifications_sent_to_every_bettor(
        self, reward_service, notification_repository, create_match, register_player, place,
        settle_match
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        register_player(2)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        place(2, match_id, ("first_ban_team1", "Io", 100))
        settle_match(match_id, {"firstBan": {"team1": "Pudge"}})

        result = reward_service.distribute_rewards(match_id, now=NOW)

        assert result.value["notifications"] == {"sent": 2, "failed": 0}
        winner = notification_repository.get_for_user(1)[0]
        loser = notification_repository.get_for_user(2)[0]
        assert winner["kind"] == "prediction_result"
        assert winner["title"] == "Congratulations, you won!"
        assert winner["data"]["reward"] == 190.0
        assert loser["title"] == "Prediction results"
        assert loser["data"]["reward"] == 0


class TestSettlement:
    def test_settle_records_and_pays(
        self, settlement_service, match_repository, player_repository, create_match,
        register_player, place
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        match_repository.close_betting_atomic(match_id)

        result = settlement_service.settle(match_id, {"firstBan": {"team1": "Pudge"}}, now=NOW)

        assert result.success
        assert result.value["results"]["winning_bets"] == 1
        assert result.value["rewards"]["users_rewarded"] == 1
        assert player_repository.get_balance(1) == 900 + 95

    def test_settle_stops_when_results_rejected(self, settlement_service, create_match):
        match_id = create_match()
        result = settlement_service.settle(match_id, {"firstBan": {"team1": "Pudge"}}, now=NOW)
        assert result.error_code == "invalid_match_status"

    def test_settle_unknown_match(self, settlement_service):
        result = settlement_service.settle(999, {"firstBan": {"team1": "Pudge"}}, now=NOW)
        assert result.error_code == "match_not_found"

    def test_failed_payout_is_finished_by_settling_again(
        self, settlement_service, bet_repository, match_repository, player_repository,
        create_match, register_player, place
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        match_repository.close_betting_atomic(match_id)

        real_apply = bet_repository.apply_rewards_atomic
        calls = []

        def apply_once_locked(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise sqlite3.OperationalError("database is locked")
            return real_apply(*args, **kwargs)

        bet_repository.apply_rewards_atomic = apply_once_locked

        with pytest.raises(sqlite3.OperationalError):
            settlement_service.settle(match_id, {"firstBan": {"team1": "Pudge"}}, now=NOW)
        assert match_repository.get_match(match_id).draft.completed
        assert player_repository.get_balance(1) == 900

        retry = settlement_service.settle(match_id, {"firstBan": {"team1": "Io"}}, now=NOW + 60)

        assert retry.success
        assert retry.value["resumed"] is True
        assert retry.value["results"] is None
        assert retry.value["rewards"]["users_rewarded"] == 1
        assert player_repository.get_balance(1) == 900 + 95

    def test_settling_paid_match_again_is_rejected(
        self, settlement_service, player_repository, match_repository, create_match,
        register_player, place
    ):
        match_id = create_match(prediction_types=BAN_ONLY)
        register_player(1)
        place(1, match_id, ("first_ban_team1", "Pudge", 100))
        match_repository.close_betting_atomic(match_id)
        assert settlement_service.settle(match_id, {"firstBan": {"team1": "Pudge"}}, now=NOW).success

        again = settlement_service.settle(match_id, {"firstBan": {"team1": "Pudge"}}, now=NOW)

        assert again.error_code == "rewards_already_distributed"
        assert player_repository.get_balance(1) == 900 + 95
