"""Telegram front-end on python-telegram-bot, driven by webhook updates."""
import logging
from typing import Any, Callable, Dict, Optional

from starlette.concurrency import run_in_threadpool
from telegram import BotCommand, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.ext import Application, CommandHandler, ContextTypes

from docdot.bot.commands import COMMANDS, BotCommands, BotReply, TelegramIdentity
from docdot.core.config import settings
from docdot.db.repository import Repository
from docdot.db.sessions import SessionLocal

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/telegram/webhook"
ERROR_REPLY = "Sorry, there was an error processing your request. Please try again."


def identity_from(update: Update) -> Optional[TelegramIdentity]:
    user = update.effective_user
    if user is None:
        return None
    return TelegramIdentity(
        id=user.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
    )


def reply_markup(reply: BotReply) -> Optional[InlineKeyboardMarkup]:
    if not reply.buttons:
        return None
    return InlineKeyboardMarkup([[InlineKeyboardButton(label, url=url)] for label, url in reply.buttons])


async def send_reply(update: Update, reply: BotReply) -> None:
    await update.effective_message.reply_text(
        reply.text,
        parse_mode=ParseMode.MARKDOWN if reply.markdown else None,
        reply_markup=reply_markup(reply),
    )


ReplyBuilder = Callable[[BotCommands, TelegramIdentity, ContextTypes.DEFAULT_TYPE], BotReply]


def build_in_session(build_reply: ReplyBuilder, identity: TelegramIdentity, context) -> BotReply:
    """Run a reply builder against a fresh DB session. Blocking: DB and AI tutor calls."""
    db = SessionLocal()
    repo = Repository(db)
    try:
        return build_reply(BotCommands(repo), identity, context)
    except Exception:
        repo.rollback()
        raise
    finally:
        db.close()


def command_handler(build_reply: ReplyBuilder):
    """Wrap a reply builder with identity lookup, a worker thread and an error reply."""

    async def handle(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        identity = identity_from(update)
        if identity is None or update.effective_message is None:
            logger.error("Update %s has no sender or message", update.update_id)
            return
        try:
            # off the event loop, which the webhook route shares
            reply = await run_in_threadpool(build_in_session, build_reply, identity, context)
            await send_reply(update, reply)
        except Exception:
            logger.exception("Error handling update %s", update.update_id)
            await update.effective_message.reply_text(ERROR_REPLY)

    return handle


async def handle_ask(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is not None and context.args:
        await update.effective_message.reply_text("Thinking... I'll have an answer for you shortly.")
    await command_handler(lambda bot, who, ctx: bot.ask(who, " ".join(ctx.args or [])))(update, context)


def build_application(token: str) -> Application:
    # no Updater: updates arrive through the FastAPI webhook route
    application = Application.builder().token(token).updater(None).build()
    application.add_handler(CommandHandler(
        "start", command_handler(lambda bot, who, ctx: bot.start(who, ctx.args[0] if ctx.args else None))
    ))
    application.add_handler(CommandHandler("web", command_handler(lambda bot, who, ctx: bot.web(who))))
    application.add_handler(CommandHandler("help", command_handler(lambda bot, who, ctx: bot.help(who))))
    application.add_handler(CommandHandler(
        "categories", command_handler(lambda bot, who, ctx: bot.categories(who))
    ))
    application.add_handler(CommandHandler("stats", command_handler(lambda bot, who, ctx: bot.stats(who))))
    application.add_handler(CommandHandler("ask", handle_ask))
    return application


async def start_bot(application: Application) -> None:
    """Initialize the bot and register the webhook when a public https URL is configured."""
    await application.initialize()
    await application.start()

    base_url = settings.WEB_BASE_URL.rstrip("/")
    if not base_url.startswith("https://"):
        logger.info("Running without a public https URL: Telegram webhook setup skipped")
        return

    webhook_url = f"{base_url}{WEBHOOK_PATH}"
    await application.bot.delete_webhook()
    await application.bot.set_webhook(webhook_url)
    await application.bot.set_my_commands([BotCommand(name, description) for name, description in COMMANDS])
    logger.info("Telegram webhook set to: %s", webhook_url)


async def stop_bot(application: Application) -> None:
    await application.stop()
    await application.shutdown()


async def process_webhook_update(application: Application, data: Dict[str, Any]) -> None:
    """Archive a raw update, dispatch it, and mark it processed once handled."""
    sender = (data.get("message") or {}).get("from") or {}
    db = SessionLocal()
    try:
        repo = Repository(db)
        archived = repo.save_bot_update(sender.get("id"), data)
        repo.commit()

        await application.process_update(Update.de_json(data, application.bot))

        repo.mark_bot_update_processed(archived.id)
        repo.commit()
    finally:
        db.close()
