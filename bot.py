"""
Main Discord bot entry for the draft predictor.
"""

import logging

# Configure logging BEFORE importing discord to prevent duplicate handlers
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    force=True,  # Override any existing handlers (e.g., from discord.py)
)
logger = logging.getLogger("predictor_bot")


class _PyNaClFilter(logging.Filter):
    """Filter out the PyNaCl warning from discord.py."""

    def filter(self, record):
        return "PyNaCl is not installed" not in record.getMessage()


logging.getLogger("discord.client").addFilter(_PyNaClFilter())

import discord
from discord.ext import commands

# discord.py adds its own handler to the 'discord' logger on import
_discord_logger = logging.getLogger("discord")
_discord_logger.handlers.clear()
_discord_logger.setLevel(logging.INFO)

from config import DISCORD_BOT_TOKEN
from infrastructure.service_container import ServiceConfig, ServiceContainer

intents = discord.Intents.default()

bot = commands.Bot(command_prefix="!", intents=intents)

_container: ServiceContainer | None = None

EXTENSIONS = [
    "commands.predictor",
]


async def _init_services():
    """Initialize all services via ServiceContainer (idempotent)."""
    global _container

    if _container is not None:
        return

    _container = ServiceContainer(ServiceConfig.from_config())
    await _container.initialize()
    _container.expose_to_bot(bot)


async def _load_extensions():
    """Load command extensions if not already loaded."""
    await _init_services()

    loaded = 0
    failed = 0
    for ext in EXTENSIONS:
        if ext in bot.extensions:
            logger.debug(f"Extension {ext} already loaded, skipping")
            continue
        try:
            await bot.load_extension(ext)
            loaded += 1
            logger.info(f"Loaded extension: {ext}")
        except Exception as exc:
            failed += 1
            logger.error(f"Failed to load extension {ext}: {exc}", exc_info=True)

    logger.info(f"Extension loading complete: {loaded} loaded, {failed} failed")


@bot.event
async def setup_hook():
    """Initialize services and load command cogs."""
    await _load_extensions()


@bot.event
async def on_ready():
    """Called when bot is ready."""
    logger.info(f"{bot.user} connected. Guilds: {len(bot.guilds)}")
    try:
        synced = await bot.tree.sync()
        logger.info(f"Slash commands synced globally: {len(synced)}")
    except Exception as exc:
        logger.error(f"Failed to sync commands: {exc}", exc_info=True)


@bot.tree.error
async def on_app_command_error(
    interaction: discord.Interaction, error: discord.app_commands.AppCommandError
):
    """Global error handler for app commands - prevents infinite 'thinking...' state."""
    command_name = interaction.command.name if interaction.command else "unknown"
    logger.error(f"App command error in '{command_name}': {error}", exc_info=error)

    error_msg = "❌ An error occurred while processing your command. Please try again."
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content=error_msg, ephemeral=True)
        else:
            await interaction.response.send_message(content=error_msg, ephemeral=True)
    except discord.HTTPException as followup_error:
        logger.error(f"Failed to send error message to user: {followup_error}")


def main():
    """Run the bot."""
    if not DISCORD_BOT_TOKEN:
        logger.error("DISCORD_BOT_TOKEN not found!")
        return

    try:
        # log_handler=None keeps discord.py from adding its own handler
        bot.run(DISCORD_BOT_TOKEN, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")


if __name__ == "__main__":
    main()
