"""
Configuration for the moderation panel.
Values come from the environment (or a local .env file); keyword tables are static.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ============================================================================
# BOT CONFIGURATION
# ============================================================================
BOT_TOKEN = os.getenv("BOT_TOKEN")
ADMIN_ID = int(os.getenv("ADMIN_ID", "0"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Webhook mode when WEBHOOK_URL is set, long polling otherwise
WEBHOOK_URL = os.getenv("WEBHOOK_URL", "")
PORT = int(os.getenv("PORT", "5000"))

# ============================================================================
# ML CLASSIFICATION (transformers pipelines)
# ============================================================================
ENABLE_ML_MODERATION = os.getenv("ENABLE_ML_MODERATION", "true").lower() == "true"
SENTIMENT_MODEL = os.getenv("SENTIMENT_MODEL", "distilbert-base-uncased-finetuned-sst-2-english")
ZERO_SHOT_MODEL = os.getenv("ZERO_SHOT_MODEL", "facebook/bart-large-mnli")
MODEL_DEVICE = int(os.getenv("MODEL_DEVICE", "-1"))  # -1 = CPU, 0 = first GPU
MODEL_MAX_CHARS = 512

ML_CATEGORIES = [
    "harassment",
    "hate speech",
    "threats",
    "profanity",
    "misinformation",
    "self-harm",
    "privacy violation",
    "spam",
]

# ============================================================================
# DECISION THRESHOLDS (shared by the ML and heuristic paths)
# ============================================================================
REJECT_THRESHOLD = float(os.getenv("REJECT_THRESHOLD", "0.8"))
FLAG_THRESHOLD = float(os.getenv("FLAG_THRESHOLD", "0.6"))
NEGATIVITY_THRESHOLD = float(os.getenv("NEGATIVITY_THRESHOLD", "0.7"))

# ============================================================================
# HEURISTIC CLASSIFIER TERM LISTS
# ============================================================================
# Lists are disjoint; a term hits on substring OR word-boundary match.
PROFANITY_TERMS = [
    "fuck", "shit", "damn", "bitch", "bastard", "crap",
    "piss", "dick", "bullshit", "wtf", "stfu",
]

HOSTILITY_TERMS = [
    "hate", "stupid", "idiot", "dumb", "loser", "worthless", "pathetic",
    "moron", "ugly", "disgusting", "trash", "garbage", "shut up", "get lost",
]

SLUR_TERMS = [
    "nigger", "nigga", "faggot", "retard", "kike", "chink",
    "tranny", "wetback", "raghead",
]

THREAT_TERMS = ["kill", "destroy", "hurt", "die", "murder", "attack"]

PROFANITY_SCORE = (0.7, 0.1)      # (present, absent)
HOSTILITY_SCORE = (0.75, 0.2)
SLUR_SCORE = 0.95
THREAT_SCORE = (0.9, 0.1)

# ============================================================================
# TOPIC DETECTION
# ============================================================================
TOPIC_KEYWORDS = {
    "Politics": ["politic", "government", "election", "democrat", "republican", "congress", "senate"],
    "Technology": ["tech", "computer", "software", "hardware", "programming", "ai", "algorithm"],
    "Entertainment": ["movie", "film", "music", "celebrity", "actor", "actress", "hollywood"],
    "Sports": ["sport", "game", "team", "player", "championship", "league", "score"],
    "Health": ["health", "medical", "doctor", "disease", "patient", "hospital", "treatment"],
    "Finance": ["finance", "money", "bank", "investment", "stock", "market", "economy"],
}

# ============================================================================
# POLICY RETRIEVAL
# ============================================================================
POLICY_KEYWORD_WEIGHT = 0.2
POLICY_MATCH_LIMIT = 3

# ============================================================================
# REMEDIATION TEXT
# ============================================================================
REJECTED_ACTIONS = [
    "Remove {category} content",
    "Rephrase respectfully",
    "Focus on constructive communication",
]

FLAGGED_ACTIONS = [
    "Consider using more respectful language",
    "Focus on the topic rather than individuals",
    "Express criticism constructively",
]

# ============================================================================
# TRAINING
# ============================================================================
MIN_TRAINING_EXAMPLES = int(os.getenv("MIN_TRAINING_EXAMPLES", "5"))
TRAINING_STEPS = 10
TRAINING_STEP_DELAY = float(os.getenv("TRAINING_STEP_DELAY", "0.5"))  # seconds

LABEL_SYNONYMS = {
    "approved": ["approved", "approve", "positive", "safe", "1"],
    "flagged": ["flagged", "flag", "review", "moderate", "0"],
    "rejected": ["rejected", "reject", "negative", "unsafe", "-1"],
}
DEFAULT_IMPORT_LABEL = "flagged"
CSV_HEADER_HINTS = ["content", "text", "label", "category"]

# ============================================================================
# STREAM FEED (Twitter v2 recent search)
# ============================================================================
TWITTER_BEARER_TOKEN = os.getenv("TWITTER_BEARER_TOKEN", "")
TWITTER_SEARCH_URL = os.getenv("TWITTER_SEARCH_URL", "https://api.twitter.com/2/tweets/search/recent")
STREAM_DEFAULT_REGION = os.getenv("STREAM_DEFAULT_REGION", "us")
STREAM_POLL_INTERVAL = int(os.getenv("STREAM_POLL_INTERVAL", "60"))  # seconds
STREAM_MAX_RESULTS = 10
STREAM_SEEN_WINDOW = int(os.getenv("STREAM_SEEN_WINDOW", "86400"))  # seconds a tweet id stays deduplicated

# Region -> tweet language filter used in the search query
REGION_LANGUAGES = {
    "us": "en",
    "uk": "en",
    "ca": "en",
    "au": "en",
    "in": "en",
    "fr": "fr",
    "de": "de",
    "es": "es",
    "br": "pt",
    "jp": "ja",
}

# ============================================================================
# MESSAGES
# ============================================================================
WELCOME_MESSAGE = """
🛡️ **Moderation Panel Active**

Every message in this group is analyzed and queued for review.

**How it works:**
• A transformer model scores each post across eight harm categories
• If the model is unavailable, a keyword classifier takes over
• Relevant policies and topics are attached to every analysis
• Moderators approve, flag or reject items from the queue

Use /help to see the commands.
"""

HELP_MESSAGE = """
🛡️ **Moderator Commands**

**Analysis**
• `/analyze <text>` – Analyze text without queueing it
• `/queue [status]` – Show recent items (approved/flagged/rejected)
• `/approve <id>`, `/flag <id>`, `/reject <id>` – Review an item
• `/stats` – Queue statistics

**Training**
• `/addexample <label> <text>` – Add a labeled example
• `/sampledata` – Load the sample training set
• `/cleartraining` – Remove all examples
• `/train` – Start a training session
• `/trainstatus` – Show training progress
• `/canceltraining` – Abort the running session
• Send a CSV file to import examples (content,label[,cat1;cat2])

**Stream**
• `/keywords [k1 k2 ...]` – Show or set stream keywords
• `/region [code]` – Show or set the stream region
• `/connect`, `/disconnect` – Control the stream
• `/contexttraining on|off` – Record streamed posts as training examples
"""

STATS_MESSAGE = """
📊 **Moderation Dashboard**

• Total Items: **{total}**
• Approved: **{approved}**
• Flagged: **{flagged}**
• Rejected: **{rejected}**

**🎯 Average Category Scores:**
{category_lines}

**🧠 Training:** {training_line}
"""
