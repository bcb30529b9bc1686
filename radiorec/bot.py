"""
Telegram bot module for Radio Recorder.

This module provides a Telegram bot interface for browsing stations and
the program guide, starting and cancelling recordings, and changing
settings. It also sends notifications for recording events.
"""

import logging
from datetime import date
from typing import Optional

from telegram import Update, BotCommand
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
)

from .config import Config, get_config
from .controller import RecordingController, get_controller
from .errors import RadioRecError
from .utils import get_disk_usage

logger = logging.getLogger(__name__)

ON_VALUES = ("on", "true", "1", "yes")
OFF_VALUES = ("off", "false", "0", "no")


def parse_day_index(value: Optional[str]) -> int:
    """
    Parse a day argument into an index into the browsable days.

    Accepts "today", "yesterday", or a number of days back (0 = today).

    Raises:
        ValueError: If the format is invalid
    """
    if value is None:
        return 0

    value = value.lower().strip()
    if value == "today":
        return 0
    if value == "yesterday":
        return 1
    if value.isdigit():
        return int(value)

    raise ValueError(f"Invalid day: {value}")


class RadioBot:
    """
    Telegram bot for controlling the Radio Recorder.

    This class handles all bot commands and provides notification
    methods for recording events.

    Attributes:
        config: Configuration object
        controller: Recording controller
        app: Telegram Application instance
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        controller: Optional[RecordingController] = None,
    ):
        """Initialize the bot with configuration."""
        self.config = config or get_config()
        self.controller = controller or get_controller()
        self.app: Optional[Application] = None
        self._authorized_chat_id: str = self.config.telegram_chat_id

    def _is_authorized(self, update: Update) -> bool:
        """
        Check if the message is from an authorized chat.

        Args:
            update: Telegram update object

        Returns:
            True if authorized, False otherwise
        """
        if not self._authorized_chat_id:
            return True  # No restriction if chat ID not configured

        chat_id = str(update.effective_chat.id)
        return chat_id == self._authorized_chat_id

    async def _check_auth(self, update: Update) -> bool:
        """
        Check authorization and send error if not authorized.

        Args:
            update: Telegram update object

        Returns:
            True if authorized
        """
        if not self._is_authorized(update):
            await update.message.reply_text("⛔ Unauthorized")
            return False
        return True

    def _station_arg(self, args: list[str], position: int = 0) -> Optional[str]:
        if len(args) > position:
            return args[position].upper()
        return self.config.dynamic.default_station_id or None

    async def _resolve_day(self, update: Update, value: Optional[str]) -> Optional[date]:
        try:
            return self.controller.resolve_day(parse_day_index(value))
        except ValueError as e:
            await update.message.reply_text(f"{e}\nUse /days to see available days.")
            return None

    # ========== Info Commands ==========

    async def cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start command - show welcome message."""
        if not await self._check_auth(update):
            return

        await update.message.reply_text(
            "🎙️ Radio Recorder Bot\n\nUse /help to see available commands."
        )

    async def cmd_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /help command - show available commands."""
        if not await self._check_auth(update):
            return

        help_text = """📻 Radio Recorder Commands

Guide Commands:
/stations - List stations
/days - List browsable broadcast days
/programs <station> [day] - Show a day's programs

Recording Commands:
/record <station> <program_id> [day] - Record a program
/cancel - Cancel the current recording
/status - Show recorder status

Config Commands:
/station <id> - Set default station
/savedir <path> - Set save directory
/notify on|off - Toggle notifications
/config - Show current configuration

Days are 0 (today), 1 (yesterday) and so on. A broadcast day runs
from 05:00 to 29:00, so late-night programs belong to the day before.

Examples:
/programs TBS
/programs TBS yesterday
/record TBS prog_003 2"""

        await update.message.reply_text(help_text)

    async def cmd_stations(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /stations command - list stations."""
        if not await self._check_auth(update):
            return

        stations = await self.controller.list_stations()
        if not stations:
            await update.message.reply_text("No stations in the guide.")
            return

        lines = ["📻 Stations\n"]
        for station in stations:
            marker = " ⭐" if station.id == self.config.dynamic.default_station_id else ""
            lines.append(f"{station.id}: {station.name}{marker}")

        await update.message.reply_text("\n".join(lines))

    async def cmd_days(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /days command - list browsable broadcast days."""
        if not await self._check_auth(update):
            return

        time_model = self.controller.time_model
        lines = ["📅 Broadcast Days\n"]
        for index, day in enumerate(self.controller.available_days()):
            lines.append(f"{index}: {time_model.format_program_date(day)}")

        await update.message.reply_text("\n".join(lines))

    async def cmd_programs(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /programs command - show a station's programs for a day."""
        if not await self._check_auth(update):
            return

        args = context.args or []
        station_id = self._station_arg(args)
        if not station_id:
            await update.message.reply_text("Usage: /programs <station> [day]")
            return

        day = await self._resolve_day(update, args[1] if len(args) > 1 else None)
        if day is None:
            return

        programs = await self.controller.list_programs(station_id, day)
        date_str = self.controller.time_model.format_program_date(day)
        if not programs:
            await update.message.reply_text(f"No programs for {station_id} on {date_str}.")
            return

        lines = [f"📋 {station_id} {date_str}\n"]
        for program in programs:
            lines.append(f"[{program.id}] {self.controller.format_program(program)}")

        await update.message.reply_text("\n".join(lines))

    async def cmd_status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /status command - show recorder status."""
        if not await self._check_auth(update):
            return

        status_parts = [self.controller.format_status()]

        disk = get_disk_usage(self.config.save_directory)
        status_parts.append(
            f"Free: {disk['free_gb']:.1f} GB / {disk['total_gb']:.1f} GB "
            f"({disk['free_percent']:.0f}% free)"
        )

        await update.message.reply_text("\n".join(status_parts))

    # ========== Recording Commands ==========

    async def cmd_record(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /record command - start recording a program."""
        if not await self._check_auth(update):
            return

        args = context.args or []
        if len(args) < 2:
            await update.message.reply_text("Usage: /record <station> <program_id> [day]")
            return

        station_id = args[0].upper()
        program_id = args[1]
        day = await self._resolve_day(update, args[2] if len(args) > 2 else None)
        if day is None:
            return

        try:
            program = await self.controller.start_recording(station_id, program_id, day)
        except RadioRecError as e:
            await update.message.reply_text(f"❌ {e}")
            return

        await update.message.reply_text(
            f"🎙️ Requested recording: {self.controller.format_program(program)}"
        )

    async def cmd_cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /cancel command - cancel the current recording."""
        if not await self._check_auth(update):
            return

        if self.controller.cancel_recording():
            await update.message.reply_text("⏹️ Cancelling...")
        else:
            await update.message.reply_text("No recording in progress.")

    # ========== Config Commands ==========

    async def cmd_station(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /station command - set the default station."""
        if not await self._check_auth(update):
            return

        args = context.args or []
        if not args:
            current = self.config.dynamic.default_station_id or "(none)"
            await update.message.reply_text(
                f"Default station is: {current}\nUse /station <id>"
            )
            return

        station_id = args[0].upper()
        stations = await self.controller.list_stations()
        if station_id not in {s.id for s in stations}:
            await update.message.reply_text(f"❌ Unknown station: {station_id}")
            return

        self.config.set_default_station(station_id)
        await update.message.reply_text(f"✅ Default station set to {station_id}")

    async def cmd_savedir(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /savedir command - set the save directory."""
        if not await self._check_auth(update):
            return

        args = context.args or []
        if not args:
            await update.message.reply_text(
                f"Save directory is: {self.config.save_directory}\nUse /savedir <path>"
            )
            return

        try:
            directory = self.config.set_save_directory(" ".join(args))
        except ValueError as e:
            await update.message.reply_text(f"❌ {e}")
            return

        await update.message.reply_text(f"✅ Save directory set to {directory}")

    async def cmd_notify(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /notify command - toggle notifications."""
        if not await self._check_auth(update):
            return

        args = context.args or []

        if not args:
            status = "on" if self.config.dynamic.notifications_enabled else "off"
            await update.message.reply_text(f"Notifications are currently: {status}\nUse /notify on|off")
            return

        value = args[0].lower()

        if value in ON_VALUES:
            self.config.set_notifications_enabled(True)
            await update.message.reply_text("✅ Notifications enabled")
        elif value in OFF_VALUES:
            self.config.set_notifications_enabled(False)
            await update.message.reply_text("❌ Notifications disabled")
        else:
            await update.message.reply_text("Use /notify on|off")

    async def cmd_config(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /config command - show current configuration."""
        if not await self._check_auth(update):
            return

        summary = self.config.get_config_summary()
        await update.message.reply_text(summary)

    # ========== Notification Methods ==========

    async def notify(self, message: str) -> None:
        """
        Send a notification message to the configured chat.

        Args:
            message: Message to send
        """
        if not self.app or not self._authorized_chat_id:
            logger.warning("Cannot send notification: bot not configured")
            return

        if not self.config.dynamic.notifications_enabled:
            return

        try:
            await self.app.bot.send_message(
                chat_id=self._authorized_chat_id,
                text=message,
            )
        except Exception as e:
            logger.error(f"Failed to send notification: {e}")

    # ========== Bot Lifecycle ==========

    async def start(self) -> None:
        """
        Start the Telegram bot.

        This initializes the bot, registers command handlers,
        and starts polling for updates.
        """
        if not self.config.telegram_bot_token:
            logger.warning("Telegram bot token not configured, bot disabled")
            return

        # Create application
        self.app = Application.builder().token(self.config.telegram_bot_token).build()

        # Register command handlers
        handlers = [
            CommandHandler("start", self.cmd_start),
            CommandHandler("help", self.cmd_help),
            CommandHandler("stations", self.cmd_stations),
            CommandHandler("days", self.cmd_days),
            CommandHandler("programs", self.cmd_programs),
            CommandHandler("status", self.cmd_status),
            CommandHandler("record", self.cmd_record),
            CommandHandler("cancel", self.cmd_cancel),
            CommandHandler("station", self.cmd_station),
            CommandHandler("savedir", self.cmd_savedir),
            CommandHandler("notify", self.cmd_notify),
            CommandHandler("config", self.cmd_config),
        ]

        for handler in handlers:
            self.app.add_handler(handler)

        # Initialize and start
        await self.app.initialize()

        # Set up bot commands for the menu
        commands = [
            BotCommand("stations", "List stations"),
            BotCommand("programs", "Show a day's programs"),
            BotCommand("record", "Record a program"),
            BotCommand("cancel", "Cancel the recording"),
            BotCommand("status", "Show recorder status"),
            BotCommand("help", "Show all commands"),
        ]
        await self.app.bot.set_my_commands(commands)

        await self.app.start()
        await self.app.updater.start_polling(drop_pending_updates=True)

        logger.info("Telegram bot started")

        # Send startup notification
        await self.notify("🟢 Radio Recorder started")

    async def stop(self) -> None:
        """
        Stop the Telegram bot gracefully.

        This sends a shutdown notification and stops the bot.
        """
        if self.app:
            # Send shutdown notification
            await self.notify("🔴 Radio Recorder stopping...")

            # Stop the bot
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()

            logger.info("Telegram bot stopped")

        self.app = None


# Global bot instance
_bot: Optional[RadioBot] = None


def get_bot() -> RadioBot:
    """
    Get the global bot instance.

    Creates the instance on first call (lazy initialization).

    Returns:
        The global RadioBot instance
    """
    global _bot
    if _bot is None:
        _bot = RadioBot()
    return _bot
