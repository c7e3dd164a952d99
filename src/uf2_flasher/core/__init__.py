"""
Core module for UF2 Flasher.

This module provides the single source of truth for:
- Value parsing (parsing.py)
- Result objects (results.py)
- Flash and dump workflows (actions.py)

The CLI should call into this module rather than implementing its own logic.
"""

from .parsing import parse_family_id, parse_timeout
from .results import OperationResult
from .actions import flash_firmware, format_block, dump_blocks

__all__ = [
    # Parsing
    "parse_family_id",
    "parse_timeout",
    # Results
    "OperationResult",
    # Actions
    "flash_firmware",
    "format_block",
    "dump_blocks",
]
