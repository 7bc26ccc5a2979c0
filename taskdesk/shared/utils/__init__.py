"""Shared utilities: datetime and id generation."""

from taskdesk.shared.utils.datetime import ensure_utc, utc_now
from taskdesk.shared.utils.generators import generate_cuid

__all__ = ["ensure_utc", "generate_cuid", "utc_now"]
