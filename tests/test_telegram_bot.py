import asyncio
import time
from types import SimpleNamespace

import pytest

from docdot.bot import telegram_bot
from docdot.bot.telegram_bot import ERROR_REPLY, command_handler, handle_ask


class FakeMessage:
    def __init__(self):
        self.replies = []

    async def reply_text(self, text, **kwargs):
        self.replies.append(text)


class SlowTutor:
    def ask(self, question, markdown=False):
        time.sleep(0.5)
        return f"Slow answer to: {question}"


def make_update(message):
    return SimpleNamespace(
        update_id=1,
        effective_user=SimpleNamespace(id=4242, username="drhouse", first_name="Greg", last_name=None),
        effective_message=message,
    )


@pytest.fixture(autouse=True)
def bot_db(session_factory, monkeypatch):
    monkeypatch.setattr(telegram_bot, "SessionLocal", session_factory)


def run_with_ticker(coro):
    """Run `coro` while counting 20 ms ticks of a concurrent task."""

    async def scenario():
        ticks = 0
        done = asyncio.Event()

        async def ticker():
            nonlocal ticks
            while not done.is_set():
                ticks += 1
                await asyncio.sleep(0.02)

        task = asyncio.create_task(ticker())
        await coro
        done.set()
        await task
        return ticks

    return asyncio.run(scenario())


def test_slow_tutor_does_not_block_event_loop(monkeypatch):
    monkeypatch.setattr("docdot.bot.commands.TutorService", SlowTutor)
    message = FakeMessage()
    context = SimpleNamespace(args=["What", "is", "the", "aorta?"])

    ticks = run_with_ticker(handle_ask(make_update(message), context))

    assert ticks >= 10
    assert message.replies[-1] == "Slow answer to: What is the aorta?"


def test_builder_failure_sends_error_reply():
    def broken(bot, who, ctx):
        raise RuntimeError("boom")

    message = FakeMessage()

    asyncio.run(command_handler(broken)(make_update(message), SimpleNamespace(args=[])))

    assert message.replies == [ERROR_REPLY]


def test_command_reply_is_sent():
    message = FakeMessage()

    asyncio.run(command_handler(lambda bot, who, ctx: bot.start(who))(make_update(message), SimpleNamespace(args=[])))

    assert "Welcome to Docdot" in message.replies[0]
