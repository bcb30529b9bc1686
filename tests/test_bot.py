"""Tests for bot argument parsing and command replies."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from radiorec.bot import RadioBot, parse_day_index
from radiorec.session import SessionState

from doubles import settle


def make_update(chat_id: int = 1) -> SimpleNamespace:
    return SimpleNamespace(
        effective_chat=SimpleNamespace(id=chat_id),
        message=SimpleNamespace(reply_text=AsyncMock()),
    )


def make_context(*args: str) -> SimpleNamespace:
    return SimpleNamespace(args=list(args))


@pytest.fixture
def bot(config, controller) -> RadioBot:
    return RadioBot(config=config, controller=controller)


@pytest.mark.parametrize("value,expected", [
    (None, 0),
    ("today", 0),
    ("Today ", 0),
    ("yesterday", 1),
    ("3", 3),
])
def test_parse_day_index(value, expected):
    assert parse_day_index(value) == expected


@pytest.mark.parametrize("value", ["tomorrow", "-1", "1.5", ""])
def test_parse_day_index_invalid(value):
    with pytest.raises(ValueError):
        parse_day_index(value)


async def test_cancel_replies_when_notifications_are_off(bot, config, controller):
    config.set_notifications_enabled(False)
    await controller.start_recording("TBS", "prog_002", date(2025, 7, 25))
    await settle()

    update = make_update()
    await bot.cmd_cancel(update, make_context())
    await settle()

    update.message.reply_text.assert_awaited_once_with("⏹️ Cancelling...")
    assert controller.session.state is SessionState.IDLE


async def test_cancel_without_recording(bot):
    update = make_update()
    await bot.cmd_cancel(update, make_context())
    update.message.reply_text.assert_awaited_once_with("No recording in progress.")


async def test_unauthorized_chat(bot, controller):
    bot._authorized_chat_id = "999"
    await controller.start_recording("TBS", "prog_002", date(2025, 7, 25))
    await settle()

    update = make_update(chat_id=1)
    await bot.cmd_cancel(update, make_context())

    update.message.reply_text.assert_awaited_once_with("⛔ Unauthorized")
    assert controller.session.state is SessionState.ACTIVE
