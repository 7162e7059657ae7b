"""Editable, paginated metrics grid bound to a metric store."""

__version__ = "0.1.0"
