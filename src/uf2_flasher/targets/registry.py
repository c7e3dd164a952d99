"""
Target registry for UF2 flashing.

Provides a single source of truth for:
- Flash targets (family ids to look for, bootloader volume names)
- Display names for well-known UF2 family ids

Usage:
    from uf2_flasher.targets import list_targets, get_target, family_name

    target = get_target("glove80")
    target.family_ids      # (0x9807B007, 0x9808B007)
    family_name(0xE48BFF56)  # "RP2040"
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


GLOVE80_LH_FAMILY_ID = 0x9807B007
GLOVE80_RH_FAMILY_ID = 0x9808B007


class UnknownTargetError(KeyError):
    """Raised when a target name is not in the registry."""

    def __init__(self, name: str, known: List[str]):
        self.name = name
        self.known = known
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown target '{self.name}'. Known targets: {', '.join(self.known)}"


@dataclass(frozen=True)
class FlashTarget:
    """A device that is flashed by copying a UF2 file onto its bootloader volume."""
    name: str
    description: str
    family_ids: Tuple[int, ...]
    volume_names: Tuple[str, ...]
    notes: Tuple[str, ...] = field(default_factory=tuple)

    def accepts(self, family_id: Optional[int]) -> bool:
        """Return True if a block with this family id is meant for the target."""
        return family_id is not None and family_id in self.family_ids

    def to_dict(self) -> Dict:
        """Convert to JSON-serializable dict."""
        return {
            "name": self.name,
            "description": self.description,
            "family_ids": [f"0x{fid:08X}" for fid in self.family_ids],
            "volume_names": list(self.volume_names),
            "notes": list(self.notes),
        }


# =============================================================================
# Target Definitions
# =============================================================================

_TARGETS: Dict[str, FlashTarget] = {
    "glove80": FlashTarget(
        name="glove80",
        description="MoErgo Glove80 split keyboard",
        family_ids=(GLOVE80_LH_FAMILY_ID, GLOVE80_RH_FAMILY_ID),
        volume_names=("GLV80LHBOOT", "GLV80RHBOOT"),
        notes=(
            "Each half mounts its own bootloader volume",
            "Firmware builds usually contain blocks for both halves",
        ),
    ),
}


# Family ids from the UF2 family list plus the targets above.
KNOWN_FAMILIES: Dict[int, str] = {
    GLOVE80_LH_FAMILY_ID: "Glove80 LH",
    GLOVE80_RH_FAMILY_ID: "Glove80 RH",
    0x68ED2B88: "SAMD21",
    0x55114460: "SAMD51",
    0xADA52840: "nRF52840",
    0x57755A57: "STM32F4",
    0xBFDD4EEE: "ESP32-S2",
    0xC47E5767: "ESP32-S3",
    0xE48BFF56: "RP2040",
    0xE48BFF59: "RP2350-ARM-S",
    0xE48BFF5A: "RP2350-RISCV",
}


# =============================================================================
# Public API
# =============================================================================

def list_targets() -> List[FlashTarget]:
    """Return all registered targets, sorted by name."""
    return [_TARGETS[name] for name in sorted(_TARGETS)]


def get_target(name: str) -> FlashTarget:
    """
    Look up a target by name (case-insensitive).

    Raises:
        UnknownTargetError: If no target has this name.
    """
    key = name.strip().lower()
    if key not in _TARGETS:
        raise UnknownTargetError(name, sorted(_TARGETS))
    return _TARGETS[key]


def family_name(family_id: int) -> Optional[str]:
    """Return a display name for a family id, or None if it is not known."""
    return KNOWN_FAMILIES.get(family_id)
