"""Telegram webhook route."""
import logging
from fastapi import APIRouter, Request

from docdot.bot.telegram_bot import WEBHOOK_PATH, process_webhook_update

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Telegram"])


@router.post(WEBHOOK_PATH)
async def telegram_webhook(request: Request):
    """Hand the update to the bot. Always 200 so Telegram does not redeliver."""
    application = getattr(request.app.state, "telegram_app", None)
    if application is None:
        return {"ok": True}

    try:
        data = await request.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        logger.warning("Ignoring Telegram webhook call with a malformed body")
        return {"ok": True}

    try:
        await process_webhook_update(application, data)
    except Exception:
        # the archived update stays unprocessed
        logger.exception("Failed to process Telegram update %s", data.get("update_id"))
    return {"ok": True}
