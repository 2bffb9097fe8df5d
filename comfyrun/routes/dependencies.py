"""Shared route dependencies."""

from typing import Optional

from fastapi import Header


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Return the principal forwarded by the upstream auth layer, if any."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None
