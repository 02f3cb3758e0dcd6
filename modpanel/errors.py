"""Error taxonomy for the moderation core."""


class ModerationError(Exception):
    """Base class for moderation panel errors."""


class ModelUnavailable(ModerationError):
    """The ML capability failed to load or raised during inference.

    The decision engine recovers from this locally by falling back to the
    heuristic classifier; callers of ``analyze()`` never see it.
    """


class AlreadyInProgress(ModerationError):
    """A training session is already running."""


class InsufficientData(ModerationError):
    """Not enough training examples to start a session."""

    def __init__(self, available: int, required: int):
        super().__init__(f"Need at least {required} training examples, have {available}")
        self.available = available
        self.required = required


class MalformedImport(ModerationError):
    """An import produced zero parseable rows."""

    def __init__(self, message: str = "No valid rows found in import", count: int = 0):
        super().__init__(message)
        self.count = count


class TweetNotFound(ModerationError):
    """Status update requested for an unknown moderation item."""

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class StreamNotConfigured(ModerationError):
    """The stream feed was asked to connect without a token or keywords."""
