"""
Helper utility functions for file operations and request parsing.
"""

import os
import json
from datetime import date, datetime

from dateutil import parser as date_parser


def save_json_file(filepath, data):
    """
    Save data to a JSON file, creating the parent directory if needed.

    Args:
        filepath: Path to the JSON file
        data: Data to save (must be JSON serializable)
    """
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2, default=str)


def parse_datetime(value):
    """
    Parse an ISO-ish date/time string into a naive datetime.

    Returns None for empty values. Raises ValueError on unparseable input.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    parsed = date_parser.parse(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz=None).replace(tzinfo=None)
    return parsed


def parse_date(value):
    """Parse a date string (or datetime) into a date. Empty values give None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.parse(str(value)).date()


def parse_bool(value, default=False):
    """Interpret query-string style booleans ('true', '1', 'yes')."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')
