"""Utilities module for shared helper functions."""

from .logger import *
from .events import EventHub, Subscription
from .json_utils import (
    error_output,
    format_for_display,
    is_error_output,
    parse_json_reply,
    strip_code_fences,
    try_parse_json,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "EventHub",
    "Subscription",
    "error_output",
    "format_for_display",
    "is_error_output",
    "parse_json_reply",
    "strip_code_fences",
    "try_parse_json",
]
