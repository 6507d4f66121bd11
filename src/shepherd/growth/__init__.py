"""Goals and challenges engine.

Tracks predefined spiritual-growth challenges and user-created goals against
activity records, derives progress and awards achievements.
"""

__version__ = "0.1.0"
