"""
Centralized configuration for the draft predictor bot.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _parse_int_list(env_var: str, default: list[int]) -> list[int]:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return [int(x.strip()) for x in raw.split(",") if x.strip()]
    except ValueError:
        return default


def _parse_str_list(env_var: str, default: list[str]) -> list[str]:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    values = [x.strip().lower() for x in raw.split(",") if x.strip()]
    return values or default


DB_PATH = os.getenv("DB_PATH", "predictor.db")
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
ADMIN_USER_IDS: list[int] = _parse_int_list("ADMIN_USER_IDS", [])

# Economy
STARTING_BALANCE = _parse_int("STARTING_BALANCE", 1000)

# Commission withheld from every prediction pool (clamped to 0.0 - 0.5)
_raw_commission = _parse_float("PREDICTOR_COMMISSION", 0.05)
PREDICTOR_COMMISSION = max(0.0, min(0.5, _raw_commission))

PREDICTOR_MIN_BET = _parse_int("PREDICTOR_MIN_BET", 10)
PREDICTOR_MAX_BET = _parse_int("PREDICTOR_MAX_BET", 10000)

# Parimutuel odds bounds
PREDICTOR_BASE_ODDS = _parse_float("PREDICTOR_BASE_ODDS", 2.0)  # Empty pool
PREDICTOR_MIN_ODDS = _parse_float("PREDICTOR_MIN_ODDS", 1.1)
PREDICTOR_MAX_ODDS = _parse_float("PREDICTOR_MAX_ODDS", 10.0)  # Also the uncontested-option value

PREDICTOR_GAMES = _parse_str_list("PREDICTOR_GAMES", ["dota2", "cs2"])

# Betting window
BETTING_CLOSE_LEAD_SECONDS = _parse_int("BETTING_CLOSE_LEAD_SECONDS", 300)  # 5 minutes
# Closing is polled: a window can close up to one interval late
BETTING_SWEEP_INTERVAL_SECONDS = _parse_int("BETTING_SWEEP_INTERVAL_SECONDS", 60)
BETTING_SWEEP_ENABLED = _parse_bool("BETTING_SWEEP_ENABLED", True)

# Notifications
MATCH_STARTING_NOTICE_SECONDS = _parse_int("MATCH_STARTING_NOTICE_SECONDS", 600)  # 10 minutes
NOTIFICATION_TTL_SECONDS = _parse_int("NOTIFICATION_TTL_SECONDS", 2592000)  # 30 days
