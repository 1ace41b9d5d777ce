"""toolguard — text-safety filters for agent tool output."""

__version__ = "0.3.0"
