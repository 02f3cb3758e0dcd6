from __future__ import annotations

import logging
from datetime import datetime

from telegram import Update
from telegram.ext import ContextTypes

from config import ADMIN_ID
from modpanel.container import get_services
from modpanel.errors import MalformedImport
from modpanel.models import Decision
from modpanel.services.importer import import_csv

logger = logging.getLogger("modpanel")


_processed_messages = {}
_MESSAGE_DEDUP_WINDOW = 300  # seconds


async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Analyze an incoming group message and add it to the review queue."""
    try:
        message = update.effective_message
        if not message or not message.text:
            return

        # Deduplication window
        now = datetime.now().timestamp()
        key = (message.chat_id, message.message_id)
        for k, ts in list(_processed_messages.items()):
            if now - ts > _MESSAGE_DEDUP_WINDOW:
                _processed_messages.pop(k, None)
        if key in _processed_messages:
            return
        _processed_messages[key] = now

        user = update.effective_user
        metadata = {
            "platform": "telegram",
            "chatId": message.chat_id,
            "messageId": message.message_id,
            "userId": user.id if user else None,
            "username": user.username if user else None,
        }
        services = get_services(context)
        item = await services.queue.process_content(message.text, source="telegram", source_metadata=metadata)

        logger.debug(f"Queued {item.id} from chat {message.chat_id}: {item.status.value}")
        if item.status == Decision.REJECTED:
            logger.info(
                f"REJECTED message from {metadata['username']} (id={metadata['userId']}): "
                f"{item.analysis.highest_category.name}"
            )
    except Exception as e:
        logger.error(f"Error processing message: {e}", exc_info=True)
        raise


async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Admin-only. Import a CSV file of `content,label[,categories]` rows as
    training examples.
    """
    message = update.effective_message
    document = message.document if message else None
    if not document:
        return

    file_name = (document.file_name or "").lower()
    if not file_name.endswith(".csv") and document.mime_type != "text/csv":
        return
    user = update.effective_user
    if not user or user.id != ADMIN_ID:
        await message.reply_text("⚠️ Only the admin can import training data.")
        return

    telegram_file = await document.get_file()
    data = await telegram_file.download_as_bytearray()
    text = bytes(data).decode("utf-8-sig", errors="replace")

    store = get_services(context).training
    try:
        count = import_csv(store, text)
    except MalformedImport as e:
        await message.reply_text(f"❌ {e} (imported {e.count} rows).")
        return
    await message.reply_text(f"✅ Imported {count} examples from {document.file_name}. {len(store)} examples stored.")
