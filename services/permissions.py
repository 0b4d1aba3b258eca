"""
Admin checks for predictor management commands.

A user is an admin when listed in ADMIN_USER_IDS, or when they hold the
Administrator or Manage Server permission in the guild the command ran in.
"""

import logging

import discord

from config import ADMIN_USER_IDS

logger = logging.getLogger("predictor_bot.services.permissions")


def _guild_permissions(interaction: discord.Interaction):
    # Prefer the cached member; interaction.user is already a Member in guild contexts
    guild = interaction.guild
    if guild is not None:
        get_member = getattr(guild, "get_member", None)
        if callable(get_member):
            member = get_member(interaction.user.id)
            perms = getattr(member, "guild_permissions", None) if member else None
            if perms is not None:
                return perms
    return getattr(interaction.user, "guild_permissions", None)


def has_admin_permission(interaction: discord.Interaction) -> bool:
    """True if the interaction's user may create, move and settle matches."""
    if interaction.user.id in ADMIN_USER_IDS:
        return True

    perms = _guild_permissions(interaction)
    if perms is not None and (
        getattr(perms, "administrator", False) or getattr(perms, "manage_guild", False)
    ):
        return True

    logger.info(f"Admin command denied for user {interaction.user.id}")
    return False
