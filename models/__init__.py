"""
Shared domain models.
"""

from models.schemas import Signal, signal_id  # noqa: F401
