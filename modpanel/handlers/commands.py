from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import List, Set

from telegram import Update
from telegram.ext import ContextTypes

from config import ADMIN_ID, HELP_MESSAGE, REGION_LANGUAGES, STATS_MESSAGE, WELCOME_MESSAGE
from modpanel.container import get_services
from modpanel.engine.retriever import PolicyRetriever
from modpanel.errors import AlreadyInProgress, InsufficientData, StreamNotConfigured, TweetNotFound
from modpanel.models import AnalysisResult, Decision, ModerationItem, TrainingExample
from modpanel.services.importer import normalize_label
from modpanel.services.metrics import compute_statistics
from modpanel.services.training import SAMPLE_TRAINING_DATA, TrainingStore

logger = logging.getLogger(__name__)

QUEUE_PAGE_SIZE = 10
DECISION_ICONS = {
    Decision.APPROVED: "✅",
    Decision.FLAGGED: "⚠️",
    Decision.REJECTED: "⛔",
}
REVIEW_COMMANDS = {
    Decision.APPROVED: "approve",
    Decision.FLAGGED: "flag",
    Decision.REJECTED: "reject",
}

_background_tasks: Set[asyncio.Task] = set()


async def _require_admin(update: Update) -> bool:
    user = update.effective_user
    if not user or user.id != ADMIN_ID:
        await update.message.reply_text("⚠️ Admin only command.")
        return False
    return True


def format_analysis(result: AnalysisResult) -> str:
    """Render an AnalysisResult as a plain-text report."""
    lines = [
        f"{DECISION_ICONS[result.decision]} Decision: {result.decision.value.upper()}",
        result.reasoning,
        "",
        "Categories:",
    ]
    lines += [f"• {c.name}: {c.score:.0%} - {c.explanation}" for c in result.categories]
    if result.detected_topics:
        lines += ["", f"Topics: {', '.join(result.detected_topics)}"]
    lines += ["", "Relevant policies:", PolicyRetriever.format_context(result.policy_references)]
    if result.suggested_actions:
        lines += ["", "Suggested actions:"]
        lines += [f"• {action}" for action in result.suggested_actions]
    return "\n".join(lines)


def format_item(item: ModerationItem, width: int = 60) -> str:
    snippet = item.content if len(item.content) <= width else item.content[: width - 3] + "..."
    return f"{DECISION_ICONS[item.status]} {item.id} [{item.source}]\n   {snippet}"


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Sends the welcome message explaining what the panel does.
    Triggered by the /start command.
    """
    await update.message.reply_text(WELCOME_MESSAGE, parse_mode="Markdown")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(HELP_MESSAGE, parse_mode="Markdown")


async def analyze_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Analyze text without adding it to the queue.
    Usage: /analyze <text>
    """
    text = " ".join(context.args or []).strip()
    if not text:
        await update.message.reply_text("❌ Usage: /analyze <text>")
        return
    services = get_services(context)
    result = await services.engine.analyze(text, correlation_id=f"cmd-{update.message.message_id}")
    await update.message.reply_text(format_analysis(result))


async def queue_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Show the most recent queue items, optionally filtered by status.
    Usage: /queue [approved|flagged|rejected]
    """
    services = get_services(context)
    args = context.args or []
    if args:
        try:
            status = Decision(args[0].lower())
        except ValueError:
            await update.message.reply_text("❌ Status must be approved, flagged or rejected.")
            return
        items = services.queue.get_by_status(status)
        title = f"📋 {status.value.capitalize()} items ({len(items)})"
    else:
        items = services.queue.get_all()
        title = f"📋 Queue ({len(items)} items)"

    if not items:
        await update.message.reply_text(f"{title}\n\nNothing to review.")
        return

    body = "\n".join(format_item(item) for item in items[:QUEUE_PAGE_SIZE])
    await update.message.reply_text(f"{title}\n\n{body}")


async def _review(update: Update, context: ContextTypes.DEFAULT_TYPE, status: Decision):
    if not await _require_admin(update):
        return
    if not context.args:
        await update.message.reply_text(f"❌ Usage: /{REVIEW_COMMANDS[status]} <item-id>")
        return

    item_id = context.args[0]
    services = get_services(context)
    try:
        item = services.queue.update_status(item_id, status)
    except TweetNotFound:
        await update.message.reply_text(f"❌ No queue item with id {item_id}.")
        return
    await update.message.reply_text(f"{DECISION_ICONS[item.status]} {item.id} marked {item.status.value}.")


async def approve_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await _review(update, context, Decision.APPROVED)


async def flag_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await _review(update, context, Decision.FLAGGED)


async def reject_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await _review(update, context, Decision.REJECTED)


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Displays the moderation dashboard.
    Triggered by the /stats command.
    """
    services = get_services(context)
    stats = compute_statistics(services.queue.get_all())

    category_lines = "\n".join(
        f"• {name}: {score:.0%}" for name, score in stats["category_averages"].items()
    ) or "• No items analyzed yet"
    text = STATS_MESSAGE.format(
        total=stats["total"],
        approved=stats["approved"],
        flagged=stats["flagged"],
        rejected=stats["rejected"],
        category_lines=category_lines,
        training_line=_training_summary(services.training),
    )
    await update.message.reply_text(text, parse_mode="Markdown")


def _training_summary(store: TrainingStore) -> str:
    session = store.session
    if session.in_progress:
        state = f"training {session.progress_percent}%"
    elif session.trained:
        state = "trained"
    else:
        state = "not trained"
    return f"{len(store)} examples, {state}"


async def addexample_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Admin-only. Add one labeled training example.
    Usage: /addexample <approved|flagged|rejected> <text>
    """
    if not await _require_admin(update):
        return
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text("❌ Usage: /addexample <label> <text>")
        return

    label = normalize_label(args[0])
    content = " ".join(args[1:]).strip()
    count = get_services(context).training.add_example(TrainingExample(content=content, label=label))
    await update.message.reply_text(f"✅ Example added as {label.value}. {count} examples stored.")


async def sampledata_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await _require_admin(update):
        return
    store = get_services(context).training
    count = store.add_examples(dataclasses.replace(e) for e in SAMPLE_TRAINING_DATA)
    await update.message.reply_text(
        f"✅ Added {len(SAMPLE_TRAINING_DATA)} sample examples. {count} examples stored."
    )


async def cleartraining_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await _require_admin(update):
        return
    get_services(context).training.clear()
    await update.message.reply_text("🗑️ All training examples removed.")


async def train_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Admin-only. Start a training session in the background and report when
    it finishes.
    """
    if not await _require_admin(update):
        return
    store = get_services(context).training
    try:
        task = store.start_training()
    except AlreadyInProgress:
        await update.message.reply_text("⏳ Training is already in progress. Use /trainstatus.")
        return
    except InsufficientData as e:
        await update.message.reply_text(
            f"❌ Need at least {e.required} examples to train (have {e.available})."
        )
        return

    await update.message.reply_text(f"🧠 Training started on {len(store)} examples.")
    report = asyncio.create_task(_report_training(update, store, task))
    _background_tasks.add(report)
    report.add_done_callback(_background_tasks.discard)


async def _report_training(update: Update, store: TrainingStore, task: asyncio.Task):
    await asyncio.wait({task})
    if task.cancelled():
        return
    if task.exception() is not None:
        logger.error(f"Training task failed: {task.exception()}")
        await update.message.reply_text("❌ Training failed. Check logs for details.")
        return
    await update.message.reply_text(f"✅ Training complete ({len(store)} examples).")


async def trainstatus_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    store = get_services(context).training
    counts = store.label_counts()
    lines = [
        f"🧠 Training: {_training_summary(store)}",
        "",
    ] + [f"• {label}: {count}" for label, count in counts.items()]
    await update.message.reply_text("\n".join(lines))


async def canceltraining_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await _require_admin(update):
        return
    if get_services(context).training.cancel_training():
        await update.message.reply_text("🛑 Training cancelled.")
    else:
        await update.message.reply_text("ℹ️ No training session is running.")


async def keywords_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Show the stream keywords, or (admin) replace them.
    Usage: /keywords [k1 k2 ...]
    """
    stream = get_services(context).stream
    if not context.args:
        keywords: List[str] = stream.config.keywords
        listing = ", ".join(keywords) if keywords else "none"
        await update.message.reply_text(f"🔎 Stream keywords: {listing}")
        return
    if not await _require_admin(update):
        return
    stream.set_keywords(context.args)
    await update.message.reply_text(f"✅ Stream keywords set: {', '.join(stream.config.keywords)}")


async def region_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    stream = get_services(context).stream
    if not context.args:
        await update.message.reply_text(f"🌍 Stream region: {stream.config.region}")
        return
    if not await _require_admin(update):
        return
    region = context.args[0].lower()
    if region not in REGION_LANGUAGES:
        await update.message.reply_text(f"❌ Unknown region. Choose one of: {', '.join(REGION_LANGUAGES)}")
        return
    stream.set_region(region)
    await update.message.reply_text(f"✅ Stream region set to {region}.")


async def connect_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await _require_admin(update):
        return
    stream = get_services(context).stream
    try:
        stream.connect()
    except StreamNotConfigured as e:
        await update.message.reply_text(f"❌ {e}")
        return
    await update.message.reply_text("📡 Stream connected.")


async def disconnect_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not await _require_admin(update):
        return
    get_services(context).stream.disconnect()
    await update.message.reply_text("🔌 Stream disconnected.")


async def contexttraining_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Toggle recording of streamed posts as training examples.
    Usage: /contexttraining on|off
    """
    stream = get_services(context).stream
    args = context.args or []
    if not args:
        state = "on" if stream.config.context_training_enabled else "off"
        await update.message.reply_text(f"🧩 Context training is {state}.")
        return
    if not await _require_admin(update):
        return
    choice = args[0].lower()
    if choice not in ("on", "off"):
        await update.message.reply_text("❌ Usage: /contexttraining on|off")
        return
    stream.set_context_training_enabled(choice == "on")
    await update.message.reply_text(f"🧩 Context training turned {choice}.")
