"""
Utilities Package

Shared helper functions used across the application.
"""

from app.utils.helpers import (
    save_json_file,
    parse_date,
    parse_datetime,
    parse_bool,
)

__all__ = [
    'save_json_file',
    'parse_date',
    'parse_datetime',
    'parse_bool',
]
