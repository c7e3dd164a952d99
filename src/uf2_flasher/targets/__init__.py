"""
Target registry for UF2 flashing.

Provides the flash targets known to the tool and display names for UF2 family ids.
"""

from .registry import (
    FlashTarget,
    UnknownTargetError,
    GLOVE80_LH_FAMILY_ID,
    GLOVE80_RH_FAMILY_ID,
    KNOWN_FAMILIES,
    list_targets,
    get_target,
    family_name,
)

__all__ = [
    "FlashTarget",
    "UnknownTargetError",
    "GLOVE80_LH_FAMILY_ID",
    "GLOVE80_RH_FAMILY_ID",
    "KNOWN_FAMILIES",
    "list_targets",
    "get_target",
    "family_name",
]
