"""QuickChat: compose, validate and store short text messages."""

__version__ = "1.0.0"
