from .date_helpers import (
    utc_now,
    now_str,
    format_date,
    format_datetime,
    to_iso
)
from .text_helpers import safe_text, truncate_text, clean_email, full_name
from .logging_helpers import log_error, setup_logging

__all__ = [
    "utc_now",
    "now_str",
    "format_date",
    "format_datetime",
    "to_iso",
    "safe_text",
    "truncate_text",
    "clean_email",
    "full_name",
    "log_error",
    "setup_logging"
]
