from urllib.parse import parse_qs, urlparse

import pytest

from docdot.bot.commands import BotCommands, TelegramIdentity
from docdot.models import User
from docdot.services.handshake import AuthHandshakeCoordinator


@pytest.fixture
def bot(repo, fake_tutor):
    return BotCommands(repo, tutor=fake_tutor)


@pytest.fixture
def identity():
    return TelegramIdentity(id=4242, username="drhouse", first_name="Greg")


def callback_params(url):
    parsed = urlparse(url)
    assert parsed.path == "/api/telegram/callback"
    return {key: values[0] for key, values in parse_qs(parsed.query).items()}


def test_start_registers_user_with_stats(bot, repo, identity):
    reply = bot.start(identity)

    user = repo.get_user_by_external_id(4242)
    assert user.username == "drhouse"
    assert user.first_name == "Greg"
    assert repo.get_stats(user.id) is not None
    assert "Welcome to Docdot" in reply.text


def test_start_twice_keeps_one_user(bot, db, identity):
    bot.start(identity)
    bot.start(identity)

    assert db.query(User).filter(User.telegram_id == 4242).count() == 1


def test_username_collision_falls_back(bot, repo, user):
    who = TelegramIdentity(id=99, username="alice")

    created = bot.ensure_user(who)

    assert created.username == "telegram_99"
    assert created.id != user.id


def test_missing_username_uses_telegram_id(bot):
    assert bot.ensure_user(TelegramIdentity(id=7)).username == "user_7"


def test_start_with_auth_payload_binds_handshake(bot, repo, identity):
    link = AuthHandshakeCoordinator(repo).begin_handshake({})

    reply = bot.start(identity, f"auth_{link.token}")

    assert repo.get_handshake(link.token).telegram_id == 4242
    label, url = reply.buttons[0]
    assert label == "Complete Authentication"
    assert callback_params(url) == {"id": "4242", "state": link.token}
    assert repo.get_user_by_external_id(4242) is None


def test_web_login_link_completes_handshake(bot, repo, identity):
    reply = bot.web(identity)

    params = callback_params(reply.buttons[1][1])
    result = AuthHandshakeCoordinator(repo).complete_handshake({}, params["id"], params["state"])

    assert result.user.telegram_id == 4242


def test_categories_link_redirects_to_categories(bot, identity):
    reply = bot.categories(identity)

    assert "Anatomy" in reply.text
    assert callback_params(reply.buttons[0][1])["redirect"] == "/categories"


def test_stats_for_unknown_user(bot, identity):
    assert "User not found" in bot.stats(identity).text


def test_stats_without_attempts(bot, identity):
    bot.start(identity)

    reply = bot.stats(identity)

    assert "haven't attempted" in reply.text
    assert reply.buttons == []


def test_stats_summary(bot, repo, identity):
    user = bot.ensure_user(identity)
    repo.update_stats(user.id, {"total_attempts": 4, "correct_answers": 3, "streak": 2, "max_streak": 3})
    repo.commit()

    reply = bot.stats(identity)

    assert "Total Quizzes: *4*" in reply.text
    assert "Accuracy: *75%*" in reply.text
    assert callback_params(reply.buttons[0][1])["redirect"] == "/stats"


def test_ask_without_question_shows_usage(bot, identity, fake_tutor):
    reply = bot.ask(identity, "  ")

    assert reply.text.startswith("Please provide a medical question")
    assert reply.markdown is False
    assert fake_tutor.questions == []


def test_ask_records_activity_for_known_user(bot, repo, identity):
    user = bot.ensure_user(identity)

    reply = bot.ask(identity, "What is the aorta?")

    assert reply.text == "Answer to: What is the aorta?"
    activity = repo.list_activity(user.id)
    assert len(activity) == 1
    assert activity[0].details["question"] == "What is the aorta?"


def test_ask_from_unknown_user_is_answered(bot, db, identity):
    reply = bot.ask(identity, "Q")

    assert reply.text == "Answer to: Q"
    assert db.query(User).count() == 0
