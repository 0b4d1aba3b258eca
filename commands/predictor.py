"""
Discord commands for the draft predictor: matches, odds, bets and settlement.

Also runs the betting window sweep on a fixed tick.
"""

import asyncio
import json
import logging
import time

import discord
from discord import app_commands
from discord.ext import commands, tasks

from config import BETTING_SWEEP_ENABLED, BETTING_SWEEP_INTERVAL_SECONDS
from domain.models.predictor import MatchStatus
from services.permissions import has_admin_permission
from utils.formatting import (
    STATUS_EMOJIS,
    format_bet_lines,
    format_coins,
    format_match_line,
    truncate_field,
)
from utils.interaction_safety import safe_defer, safe_followup

logger = logging.getLogger("predictor_bot.commands.predictor")

STATUS_CHOICES = [
    app_commands.Choice(name=status.value, value=status.value) for status in MatchStatus
]
BET_STATUS_CHOICES = [
    app_commands.Choice(name=name, value=name) for name in ("pending", "won", "lost")
]


def parse_prediction_args(raw: str) -> list[dict]:
    """
    Parse "type=choice:amount, type=choice:amount" into bet request predictions.

    Raises:
        ValueError: If an entry is not in type=choice:amount form
    """
    predictions = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        ptype, sep, rest = entry.partition("=")
        choice, sep2, amount = rest.rpartition(":")
        if not sep or not sep2 or not ptype.strip() or not choice.strip():
            raise ValueError(f"Could not read `{entry}`. Use type=choice:amount.")
        try:
            bet_amount = int(amount.strip())
        except ValueError:
            raise ValueError(f"Amount in `{entry}` must be a whole number.") from None
        predictions.append(
            {"type": ptype.strip(), "choice": choice.strip(), "betAmount": bet_amount}
        )
    return predictions


class PredictorCommands(commands.Cog):
    """Slash commands for draft predictions."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def cog_load(self):
        if BETTING_SWEEP_ENABLED:
            self.betting_sweep.start()

    async def cog_unload(self):
        """Stop the sweep when the cog is unloaded."""
        self.betting_sweep.cancel()

    # --- Service accessors ---

    @property
    def player_service(self):
        return getattr(self.bot, "player_service", None)

    @property
    def match_service(self):
        return getattr(self.bot, "predictor_match_service", None)

    @property
    def odds_calculator(self):
        return getattr(self.bot, "odds_calculator", None)

    @property
    def placement_service(self):
        return getattr(self.bot, "bet_placement_service", None)

    @property
    def window_service(self):
        return getattr(self.bot, "betting_window_service", None)

    @property
    def stats_service(self):
        return getattr(self.bot, "stats_service", None)

    @property
    def settlement_service(self):
        return getattr(self.bot, "settlement_service", None)

    @property
    def notification_service(self):
        return getattr(self.bot, "notification_service", None)

    # --- Scheduler ---

    @tasks.loop(seconds=BETTING_SWEEP_INTERVAL_SECONDS)
    async def betting_sweep(self):
        """Close due betting windows and send starting notices."""
        window_service = self.window_service
        if window_service is None:
            return
        try:
            summary = await asyncio.to_thread(window_service.sweep)
        except Exception as e:
            logger.error(f"Betting sweep failed: {e}", exc_info=True)
            return
        if summary["failed_count"] or summary.get("notice_failed_count"):
            logger.warning(
                f"Betting sweep had {summary['failed_count']} failed close(s), "
                f"{summary.get('notice_failed_count', 0)} failed notice(s)"
            )

    @betting_sweep.before_loop
    async def before_betting_sweep(self):
        await self.bot.wait_until_ready()
        logger.info(f"Betting sweep running every {BETTING_SWEEP_INTERVAL_SECONDS}s")

    # --- Player commands ---

    @app_commands.command(name="predictor-register", description="Open a predictor account")
    async def register(self, interaction: discord.Interaction):
        await safe_defer(interaction, ephemeral=True)
        result = await asyncio.to_thread(
            self.player_service.register_player, interaction.user.id, interaction.user.name
        )
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return
        await safe_followup(
            interaction,
            content=f"✅ Account opened with {format_coins(result.value['balance'])}.",
            ephemeral=True,
        )

    @app_commands.command(name="predictor-matches", description="List predictor matches")
    @app_commands.describe(status="Filter by status", game="Filter by game (e.g. dota2, cs2)")
    @app_commands.choices(status=STATUS_CHOICES)
    async def matches(
        self,
        interaction: discord.Interaction,
        status: app_commands.Choice[str] | None = None,
        game: str | None = None,
    ):
        await safe_defer(interaction)
        matches = await asyncio.to_thread(
            self.match_service.list_matches,
            status.value if status else None,
            game.lower() if game else None,
        )
        if not matches:
            await safe_followup(interaction, content="No matches found.")
            return

        embed = discord.Embed(title="🎯 Draft Predictor Matches", color=discord.Color.blurple())
        embed.description = truncate_field(
            "\n".join(format_match_line(match) for match in matches), 4096
        )
        await safe_followup(interaction, embed=embed)

    @app_commands.command(name="predictor-odds", description="Show current odds for a match")
    @app_commands.describe(match_id="Match ID")
    async def odds(self, interaction: discord.Interaction, match_id: int):
        await safe_defer(interaction)
        result = await asyncio.to_thread(self.odds_calculator.get_odds_board, match_id)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}")
            return

        board = result.value
        match = (await asyncio.to_thread(self.match_service.get_match, match_id)).value
        embed = discord.Embed(
            title=f"{STATUS_EMOJIS.get(match.status, '')} {match.team1.name} vs {match.team2.name}",
            description=f"Starts <t:{match.start_time}:R>",
            color=discord.Color.gold(),
        )
        for ptype in board["types"][:25]:
            lines = [
                f"**{option['choice']}** x{option['odds']:.2f} ({option['staked']} staked)"
                for option in ptype["options"]
            ]
            name = ptype["title"] or ptype["type"]
            if ptype["closed"]:
                name += " 🔒"
            embed.add_field(
                name=f"{name} · pool {ptype['reward_pool']}",
                value=truncate_field("\n".join(lines)),
                inline=False,
            )
        await safe_followup(interaction, embed=embed)

    @app_commands.command(name="predictor-bet", description="Place a bet on a match")
    @app_commands.describe(
        match_id="Match ID",
        predictions="Comma-separated type=choice:amount, e.g. first_ban_team1=Pudge:100",
    )
    async def bet(self, interaction: discord.Interaction, match_id: int, predictions: str):
        await safe_defer(interaction, ephemeral=True)
        try:
            parsed = parse_prediction_args(predictions)
        except ValueError as e:
            await safe_followup(interaction, content=f"❌ {e}", ephemeral=True)
            return

        result = await asyncio.to_thread(
            self.placement_service.place_bet_from_request,
            interaction.user.id,
            {"matchId": match_id, "predictions": parsed},
        )
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return

        bet = result.value
        lines = format_bet_lines(bet)
        await safe_followup(
            interaction,
            content=f"✅ Bet #{bet.bet_id} placed for {format_coins(bet.total_bet)}\n"
            + "\n".join(lines),
            ephemeral=True,
        )

    @app_commands.command(name="predictor-mybets", description="Show your predictor bets")
    @app_commands.describe(status="Only bets with a prediction in this status", page="Page number")
    @app_commands.choices(status=BET_STATUS_CHOICES)
    async def mybets(
        self,
        interaction: discord.Interaction,
        status: app_commands.Choice[str] | None = None,
        game: str | None = None,
        page: int = 1,
    ):
        await safe_defer(interaction, ephemeral=True)
        listing = await asyncio.to_thread(
            self.stats_service.get_user_bets,
            interaction.user.id,
            status.value if status else None,
            game.lower() if game else None,
            10,
            page,
        )
        history = await asyncio.to_thread(
            self.stats_service.get_user_history_stats, interaction.user.id
        )

        embed = discord.Embed(title="🎟️ Your Predictions", color=discord.Color.green())
        embed.description = (
            f"Wins {history['total_wins']} · Losses {history['total_losses']} · "
            f"Pending {history['total_pending']} · Success {history['success_rate']}%\n"
            f"Staked {format_coins(history['total_bet_amount'])} · "
            f"Won {format_coins(history['total_win_amount'])} · "
            f"Net {format_coins(history['net_profit'])}"
        )
        for bet in listing["bets"][:25]:
            embed.add_field(
                name=f"Bet #{bet.bet_id} · match #{bet.match_id}",
                value=truncate_field("\n".join(format_bet_lines(bet))),
                inline=False,
            )
        pagination = listing["pagination"]
        embed.set_footer(text=f"Page {pagination['page']}/{max(1, pagination['pages'])}")
        await safe_followup(interaction, embed=embed, ephemeral=True)

    @app_commands.command(name="predictor-stats", description="Show betting stats for a match")
    @app_commands.describe(match_id="Match ID")
    async def stats(self, interaction: discord.Interaction, match_id: int):
        await safe_defer(interaction)
        result = await asyncio.to_thread(self.stats_service.get_match_stats, match_id)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}")
            return

        embed = discord.Embed(title=f"📊 Match #{match_id} stats", color=discord.Color.teal())
        for type_stats in result.value["stats"][:25]:
            lines = [
                f"**{option['choice']}**: {option['bets_count']} bet(s), "
                f"{option['total_amount']} ({option['percentage']}%)"
                for option in type_stats["options"]
                if option["bets_count"]
            ] or ["No bets yet"]
            embed.add_field(
                name=f"{type_stats['type']} · {type_stats['total_amount']} from "
                f"{type_stats['participants']} player(s)",
                value=truncate_field("\n".join(lines)),
                inline=False,
            )
        await safe_followup(interaction, embed=embed)

    @app_commands.command(name="predictor-inbox", description="Show your predictor notifications")
    async def inbox(self, interaction: discord.Interaction):
        await safe_defer(interaction, ephemeral=True)
        notifications = await asyncio.to_thread(
            self.notification_service.get_user_notifications, interaction.user.id, False, 10
        )
        if not notifications:
            await safe_followup(interaction, content="No unread notifications.", ephemeral=True)
            return
        for notification in notifications:
            await asyncio.to_thread(
                self.notification_service.mark_as_read,
                notification["notification_id"],
                interaction.user.id,
            )
        lines = [f"**{n['title']}** {n['message']}" for n in notifications]
        await safe_followup(interaction, content=truncate_field("\n".join(lines), 2000), ephemeral=True)

    # --- Admin commands ---

    @app_commands.command(name="predictor-create", description="Create a predictor match (Admin)")
    @app_commands.describe(
        game="Game tag (dota2, cs2)",
        team1="Team 1 name",
        team2="Team 2 name",
        starts_in_minutes="Minutes until the match starts",
        prediction_types='JSON list, e.g. [{"type": "most_banned", "options": ["Io", "Pudge"]}]',
    )
    async def create(
        self,
        interaction: discord.Interaction,
        game: str,
        team1: str,
        team2: str,
        starts_in_minutes: int,
        prediction_types: str,
    ):
        if not has_admin_permission(interaction):
            await interaction.response.send_message("❌ Admin only.", ephemeral=True)
            return
        await safe_defer(interaction, ephemeral=True)
        try:
            types = json.loads(prediction_types)
        except json.JSONDecodeError as e:
            await safe_followup(interaction, content=f"❌ Invalid JSON: {e}", ephemeral=True)
            return

        result = await asyncio.to_thread(
            self.match_service.create_match,
            game.lower(),
            team1,
            team2,
            int(time.time()) + starts_in_minutes * 60,
            types,
        )
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return
        await safe_followup(
            interaction, content=f"✅ Created {format_match_line(result.value)}", ephemeral=True
        )

    @app_commands.command(name="predictor-status", description="Change a match status (Admin)")
    @app_commands.describe(match_id="Match ID", status="New status")
    @app_commands.choices(status=STATUS_CHOICES)
    async def status(
        self,
        interaction: discord.Interaction,
        match_id: int,
        status: app_commands.Choice[str],
    ):
        if not has_admin_permission(interaction):
            await interaction.response.send_message("❌ Admin only.", ephemeral=True)
            return
        await safe_defer(interaction, ephemeral=True)
        result = await asyncio.to_thread(self.match_service.change_status, match_id, status.value)
        if not result.success:
            await safe_followup(interaction, content=f"❌ {result.error}", ephemeral=True)
            return
        await safe_followup(
            interaction, content=f"✅ {format_match_line(result.value)}", ephemeral=True
        )

    @app_commands.command(
        name="predictor-results", description="Submit draft results and pay out (Admin)"
    )
    @app_commands.describe(
        match_id="Match ID",
        results='JSON, e.g. {"firstBan": {"team1": "Io"}, "mostBanned": "Pudge", "picks": {...}}',
    )
    async def results(self, interaction: discord.Interaction, match_id: int, results: str):
        if not has_admin_permission(interaction):
            await interaction.response.send_message("❌ Admin only.", ephemeral=True)
            return
        await safe_defer(interaction, ephemeral=True)
        try:
            payload = json.loads(results)
        except json.JSONDecodeError as e:
            await safe_followup(interaction, content=f"❌ Invalid JSON: {e}", ephemeral=True)
            return

        outcome = await asyncio.to_thread(self.settlement_service.settle, match_id, payload)
        if not outcome.success:
            await safe_followup(interaction, content=f"❌ {outcome.error}", ephemeral=True)
            return

        processed = outcome.value["results"]
        rewards = outcome.value["rewards"]
        lines = [f"✅ Match #{match_id} settled."]
        if processed is None:
            lines.append("Results were already recorded; submitted results ignored, payout completed.")
        else:
            lines.append(
                f"Bets processed: {processed['processed_bets']} "
                f"(winning: {processed['winning_bets']})"
            )
        lines += [
            f"Paid {format_coins(rewards['total_rewards_distributed'])} "
            f"to {rewards['users_rewarded']} user(s)",
        ]
        for item in rewards["undistributed"]:
            lines.append(f"No winners on `{item['type']}`; pool of {item['reward_pool']} kept")
        if rewards["notifications"]["failed"]:
            lines.append(f"⚠️ {rewards['notifications']['failed']} notification(s) failed")
        await safe_followup(interaction, content="\n".join(lines), ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(PredictorCommands(bot))
