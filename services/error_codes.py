"""
Standard error codes for service layer.

These error codes allow command handlers to programmatically handle
specific error conditions without parsing error message text.

Usage:
    from services.error_codes import MATCH_NOT_FOUND, INSUFFICIENT_FUNDS
    from services.result import Result

    if match is None:
        return Result.fail("Match not found", code=MATCH_NOT_FOUND)

    if balance < amount:
        return Result.fail("Insufficient funds", code=INSUFFICIENT_FUNDS)
"""

# General errors
NOT_FOUND = "not_found"
VALIDATION_ERROR = "validation_error"
STATE_ERROR = "state_error"
FORBIDDEN = "forbidden"

# Request shape errors (boundary)
INVALID_DATA = "invalid_data"
INVALID_PREDICTION_DATA = "invalid_prediction_data"
INVALID_GAME = "invalid_game"
INVALID_TEAM = "invalid_team"
INVALID_STATUS = "invalid_status"

# Bet admission errors
MATCH_NOT_FOUND = "match_not_found"
BETTING_CLOSED = "betting_closed"
NO_PREDICTIONS = "no_predictions"
INVALID_BET_AMOUNT = "invalid_bet_amount"
INVALID_PREDICTION_TYPE = "invalid_prediction_type"
INVALID_CHOICE = "invalid_choice"
INSUFFICIENT_FUNDS = "insufficient_funds"
DUPLICATE_BET = "duplicate_bet"

# Match state errors
INVALID_MATCH_STATUS = "invalid_match_status"
DRAFT_NOT_COMPLETED = "draft_not_completed"
REWARDS_ALREADY_DISTRIBUTED = "rewards_already_distributed"

# Secondary entity errors
PLAYER_NOT_FOUND = "player_not_found"
PLAYER_ALREADY_EXISTS = "player_already_exists"
BET_NOT_FOUND = "bet_not_found"
NOTIFICATION_NOT_FOUND = "notification_not_found"
