"""Formatting utilities for currency and file names."""

from __future__ import annotations

import math
from typing import Optional, Union


def format_currency(amount: Union[float, int, None], include_sign: bool = True) -> str:
    """Format an amount as whole US dollars.

    Args:
        amount: The amount to format; ``None`` and non-finite values show as zero
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,200" or "-$1,200")

    Example:
        >>> format_currency(1234.56)
        '$1,235'
        >>> format_currency(-1200)
        '-$1,200'
    """
    value = float(amount or 0)
    if not math.isfinite(value):
        value = 0.0
    rounded = math.floor(abs(value) + 0.5)
    formatted = f"{rounded:,}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if value < 0 and rounded else formatted


def safe_filename(name: str, default: str = 'file', max_length: Optional[int] = None) -> str:
    """Create a safe filename from a user-provided name.

    Keeps alphanumeric characters, underscores and hyphens; spaces become
    underscores.

    Example:
        >>> safe_filename("user 42!")
        'user_42'
        >>> safe_filename("", default="anonymous")
        'anonymous'
    """
    if not name:
        return default

    cleaned = ''.join(c for c in str(name) if c.isalnum() or c in {' ', '_', '-'})
    cleaned = cleaned.strip().replace(' ', '_')

    while '__' in cleaned:
        cleaned = cleaned.replace('__', '_')

    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length]

    cleaned = cleaned.rstrip('_')

    return cleaned if cleaned else default
