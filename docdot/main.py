import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from docdot.routes import auth, image_quiz, quiz, stats, telegram, tutor
from docdot.bot.telegram_bot import build_application, start_bot, stop_bot
from docdot.db.base import Base
from docdot.db.repository import Repository
from docdot.db.seed import seed_sample_content
from docdot.db.sessions import engine, SessionLocal
from docdot.core.config import settings
from docdot.core.errors import DocdotError, docdot_error_handler

# Import all models to ensure they're registered with Base
import docdot.models

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Medical quiz platform with a Telegram companion bot"
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie session, shared by the web login and the Telegram handshake
app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY, same_site="lax")

app.add_exception_handler(DocdotError, docdot_error_handler)

# Register routers
app.include_router(auth.router)
app.include_router(quiz.router)
app.include_router(image_quiz.router)
app.include_router(stats.router)
app.include_router(tutor.router)
app.include_router(telegram.router)


@app.on_event("startup")
async def startup_event():
    # Create tables
    Base.metadata.create_all(bind=engine)

    if settings.SEED_SAMPLE_DATA:
        db = SessionLocal()
        try:
            seed_sample_content(Repository(db))
        finally:
            db.close()

    app.state.telegram_app = None
    if settings.TELEGRAM_BOT_TOKEN:
        application = build_application(settings.TELEGRAM_BOT_TOKEN)
        try:
            await start_bot(application)
            app.state.telegram_app = application
        except Exception:
            logger.exception("Failed to set up Telegram bot")
    else:
        logger.warning("Telegram bot not initialized: TELEGRAM_BOT_TOKEN is missing")

    logger.info("%s v%s started", settings.APP_NAME, settings.APP_VERSION)


@app.on_event("shutdown")
async def shutdown_event():
    application = getattr(app.state, "telegram_app", None)
    if application is not None:
        await stop_bot(application)


@app.get("/health")
def health():
    return {"status": "ok"}
