"""
Content moderation panel: decision pipeline, review queue, training store.
"""
__version__ = "0.1.0"
