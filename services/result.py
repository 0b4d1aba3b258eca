"""
Service return type.

Expected failures (admission errors, state errors, missing entities) come back
as a failed Result carrying a code from services.error_codes, so command
handlers branch on error_code instead of parsing text. Anything unexpected
still raises.

    result = bet_placement_service.place_bet(discord_id, match_id, predictions)
    if not result.success:
        await interaction.followup.send(f"❌ {result.error}")
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    success: bool
    value: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> "Result[T]":
        return cls(success=False, error=error, error_code=code)

    @classmethod
    def from_exception(cls, exc: ValueError, default_code: str | None = None) -> "Result[T]":
        """
        Turn a repository ValueError into a failure.

        PredictorConflictError keeps its own code; a plain ValueError gets default_code.
        """
        return cls.fail(str(exc), code=getattr(exc, "code", None) or default_code)
