"""Utility functions for gcalagent."""

from gcalagent.utils.masking import mask_key
from gcalagent.utils.json_recovery import strip_code_fences, parse_json_object

__all__ = [
    "mask_key",
    "strip_code_fences",
    "parse_json_object",
]
