"""
Centralized parsing helpers for user-supplied values.

The CLI imports these helpers rather than re-implementing them.
"""

from typing import Optional

MAX_FAMILY_ID = 0xFFFFFFFF


def parse_family_id(value: str) -> int:
    """
    Parse a UF2 family id from string.

    Accepts:
        - Hex with 0x prefix: "0x9807B007" or "0X9807B007"
        - Hex with h suffix: "9807B007h" or "9807B007H"
        - Decimal: "2550640647"

    Returns:
        Parsed 32-bit family id.

    Raises:
        ValueError: If value cannot be parsed or does not fit in 32 bits.
    """
    text = value.strip()
    try:
        if text.lower().startswith("0x"):
            parsed = int(text, 16)
        elif text.lower().endswith("h"):
            parsed = int(text[:-1], 16)
        else:
            parsed = int(text)
    except ValueError:
        raise ValueError(
            f"Invalid family id '{value}'. Use hex (0x9807B007), suffix (9807B007h), or decimal."
        )

    if not 0 <= parsed <= MAX_FAMILY_ID:
        raise ValueError(f"Family id '{value}' does not fit in 32 bits")
    return parsed


def parse_timeout(value: Optional[float]) -> Optional[float]:
    """
    Normalize a timeout option.

    None and values <= 0 mean "wait forever" and are returned as None.
    """
    if value is None or value <= 0:
        return None
    return float(value)
