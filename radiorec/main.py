"""
Entry point for Radio Recorder.

Wires the recording controller to the Telegram bot, watches free space in
the save directory, and cancels any in-flight recording on SIGINT/SIGTERM
before the bot goes offline.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

from .bot import get_bot
from .config import get_config
from .controller import get_controller
from .utils import setup_logging, check_disk_space_warning

logger = logging.getLogger(__name__)

DISK_CHECK_INTERVAL = 3600
LOW_SPACE_THRESHOLD_GB = 5.0


class RadioRecorderApp:
    """
    Runs the bot and the recording controller until a shutdown signal.

    Attributes:
        config: Application configuration
        controller: Recording controller owning the session
        bot: Telegram bot instance
    """

    def __init__(self):
        self.config = get_config()
        self.controller = get_controller()
        self.bot = get_bot()
        self._stopping: Optional[asyncio.Event] = None
        self._signalled = False

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._on_signal, sig)
        logger.info("Signal handlers registered (SIGTERM, SIGINT)")

    def _on_signal(self, sig: signal.Signals) -> None:
        # A second signal while stopping means the user wants out now
        if self._signalled:
            logger.warning(f"Received {sig.name} again, exiting immediately")
            sys.exit(1)

        self._signalled = True
        logger.info(f"Received {sig.name}, stopping")
        if self._stopping is not None:
            self._stopping.set()

    async def _watch_disk_space(self) -> None:
        """Warn the chat about low space in the save directory, hourly."""
        while True:
            try:
                warning = check_disk_space_warning(threshold_gb=LOW_SPACE_THRESHOLD_GB)
            except OSError as e:
                logger.error(f"Disk space check failed: {e}")
            else:
                if warning:
                    await self.bot.notify(warning)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=DISK_CHECK_INTERVAL)
            except asyncio.TimeoutError:
                continue
            return

    def _log_settings(self) -> None:
        days = self.controller.available_days()
        logger.info(
            f"Broadcast zone {self.config.timezone}, "
            f"day starts {self.config.day_start_hour:02d}:00, "
            f"browsable {days[-1].isoformat()} .. {days[0].isoformat()}"
        )
        logger.info(f"Guide file: {self.config.guide_path}")
        logger.info(f"Recordings saved to: {self.config.save_directory}")

    async def start(self) -> None:
        """Start the bot, then block until a shutdown signal arrives."""
        logger.info("Radio Recorder starting...")
        self._log_settings()

        self.controller.set_notifier(self.bot.notify)
        self._stopping = asyncio.Event()
        self._install_signal_handlers()

        disk_watch: Optional[asyncio.Task] = None
        try:
            await self.bot.start()
            disk_watch = asyncio.create_task(self._watch_disk_space())
            await self._stopping.wait()
        except Exception as e:
            logger.exception(f"Fatal error: {e}")
            raise
        finally:
            if disk_watch is not None:
                disk_watch.cancel()
                try:
                    await disk_watch
                except asyncio.CancelledError:
                    pass
            await self.stop()

    async def stop(self) -> None:
        """
        Stop everything.

        An in-flight recording is cancelled, not awaited; it cannot
        outlive the process. The bot stops last so the cancellation
        notice still reaches the chat.
        """
        logger.info("Shutting down...")

        if self.controller.session.is_recording:
            await self.bot.notify("⚠️ Shutdown requested, cancelling recording...")

        await self.controller.shutdown()
        await self.bot.stop()

        logger.info("Shutdown complete")


async def main() -> None:
    setup_logging(level=logging.INFO)

    try:
        await RadioRecorderApp().start()
    except Exception as e:
        logger.exception(f"Application error: {e}")
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    run()
