"""
Telegram Moderation Panel - application entrypoint.
Builds the services, registers the moderator console handlers and runs the
bot in webhook mode (WEBHOOK_URL set) or long polling.
"""
import logging
import sys

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from config import ADMIN_ID, BOT_TOKEN, LOG_LEVEL, PORT, WEBHOOK_URL
from modpanel.container import SERVICES_KEY, Services, build_services
from modpanel.handlers.commands import (
    start_command,
    help_command,
    analyze_command,
    queue_command,
    approve_command,
    flag_command,
    reject_command,
    stats_command,
    addexample_command,
    sampledata_command,
    cleartraining_command,
    train_command,
    trainstatus_command,
    canceltraining_command,
    keywords_command,
    region_command,
    connect_command,
    disconnect_command,
    contexttraining_command,
)
from modpanel.handlers.messages import handle_document, handle_text_message
from modpanel.logging import configure_logging

logger = configure_logging(getattr(logging, LOG_LEVEL, logging.INFO))

COMMANDS = [
    ("start", start_command),
    ("help", help_command),
    ("analyze", analyze_command),
    ("queue", queue_command),
    ("approve", approve_command),
    ("flag", flag_command),
    ("reject", reject_command),
    ("stats", stats_command),
    ("addexample", addexample_command),
    ("sampledata", sampledata_command),
    ("cleartraining", cleartraining_command),
    ("train", train_command),
    ("trainstatus", trainstatus_command),
    ("canceltraining", canceltraining_command),
    ("keywords", keywords_command),
    ("region", region_command),
    ("connect", connect_command),
    ("disconnect", disconnect_command),
    ("contexttraining", contexttraining_command),
]


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """Log errors without crashing the bot."""
    logger.error(f"Error while handling update {update}: {context.error}", exc_info=context.error)


async def warm_up_model(application: Application):
    services: Services = application.bot_data[SERVICES_KEY]
    if await services.engine.classifier.load():
        logger.info("ML classifier ready")
    else:
        logger.warning("ML classifier unavailable - keyword heuristics will be used")


async def shutdown(application: Application):
    services: Services = application.bot_data[SERVICES_KEY]
    services.stream.disconnect()
    services.training.cancel_training()


def register_handlers(application: Application) -> None:
    for name, callback in COMMANDS:
        application.add_handler(CommandHandler(name, callback))
    application.add_handler(MessageHandler(filters.Document.ALL, handle_document))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text_message))
    application.add_error_handler(error_handler)


def build_application(token: str, services: Services) -> Application:
    application = (
        Application.builder()
        .token(token)
        .post_init(warm_up_model)
        .post_shutdown(shutdown)
        .build()
    )
    application.bot_data[SERVICES_KEY] = services
    register_handlers(application)
    return application


def main():
    if not BOT_TOKEN:
        logger.error("BOT_TOKEN not set in environment variables!")
        sys.exit(1)
    if not ADMIN_ID:
        logger.error("ADMIN_ID not set in environment variables!")
        sys.exit(1)

    application = build_application(BOT_TOKEN, build_services())
    handler_count = sum(len(h) for h in application.handlers.values())
    logger.info(f"Moderation panel initialized ({handler_count} handlers, admin {ADMIN_ID})")

    if WEBHOOK_URL:
        url_path = f"webhook/{BOT_TOKEN}"
        logger.info(f"Starting in webhook mode on port {PORT}")
        application.run_webhook(
            listen="0.0.0.0",
            port=PORT,
            url_path=url_path,
            webhook_url=f"{WEBHOOK_URL.rstrip('/')}/{url_path}",
        )
    else:
        logger.info("Starting in polling mode")
        application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
