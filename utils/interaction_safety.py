"""
Helpers that keep slash-command handlers alive when an interaction has expired
or was already acknowledged.
"""

import logging

import discord

logger = logging.getLogger("predictor_bot.utils.interaction_safety")


async def safe_defer(interaction: discord.Interaction, ephemeral: bool = False) -> bool:
    """
    Defer an interaction response if it has not been answered yet.

    Returns:
        True if the interaction was deferred, False if it was already answered or expired
    """
    if interaction.response.is_done():
        return False
    try:
        await interaction.response.defer(ephemeral=ephemeral, thinking=True)
        return True
    except (discord.NotFound, discord.InteractionResponded) as e:
        logger.warning(f"Could not defer interaction {interaction.id}: {e}")
        return False


async def safe_followup(interaction: discord.Interaction, **kwargs):
    """
    Send a followup message, dropping None-valued kwargs discord.py rejects.

    Returns:
        The sent message, or None if the interaction token has expired
    """
    payload = {key: value for key, value in kwargs.items() if value is not None}
    try:
        return await interaction.followup.send(**payload)
    except discord.NotFound as e:
        logger.warning(f"Interaction {interaction.id} expired before followup: {e}")
        return None
