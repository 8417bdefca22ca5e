"""Common utility functions."""

from .phone import is_valid_e164, normalize_phone_number

__all__ = [
    "is_valid_e164",
    "normalize_phone_number",
]
