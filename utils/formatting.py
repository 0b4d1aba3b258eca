"""
Shared formatting helpers for predictor embeds and messages.
"""

from domain.models.predictor import MatchStatus, PredictorBet, PredictorMatch

COIN_EMOTE = "🪙"

STATUS_EMOJIS = {
    MatchStatus.UPCOMING: "🕒",
    MatchStatus.LIVE: "🔴",
    MatchStatus.DRAFT_PHASE: "📋",
    MatchStatus.COMPLETED: "✅",
    MatchStatus.CANCELLED: "🚫",
}

PREDICTION_STATUS_EMOJIS = {
    "pending": "⏳",
    "won": "🏆",
    "lost": "❌",
}

FIELD_VALUE_LIMIT = 1024


def truncate_field(text: str, max_len: int = FIELD_VALUE_LIMIT) -> str:
    """Truncate text to fit Discord's embed field limit."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_coins(amount: float) -> str:
    """Format an amount without a trailing .0 for whole values."""
    return f"{amount:g} {COIN_EMOTE}"


def format_match_line(match: PredictorMatch) -> str:
    """One-line summary, e.g. '🕒 #3 Team A vs Team B (dota2) <t:...:R>'."""
    emoji = STATUS_EMOJIS.get(match.status, "")
    return (
        f"{emoji} #{match.match_id} **{match.team1.name}** vs **{match.team2.name}** "
        f"({match.game}) <t:{match.start_time}:R>"
    )


def format_bet_lines(bet: PredictorBet) -> list[str]:
    """One line per prediction in a bet."""
    lines = []
    for pred in bet.predictions:
        emoji = PREDICTION_STATUS_EMOJIS.get(pred.status.value, "")
        line = f"{emoji} `{pred.type}` → **{pred.choice}**: {pred.bet_amount} @ {pred.odds:.2f}"
        if pred.reward:
            line += f" (+{format_coins(pred.reward)})"
        lines.append(line)
    return lines
