"""
Phone number rendering under a visibility mode.

Phone strings are treated as opaque text: no parsing or normalization is
applied, so malformed numbers are masked the same way as valid ones.
"""

from enum import Enum
from typing import Optional

MASK_CHAR = "•"
HIDDEN_PHONE_LENGTH = 10

# Characters left readable in masked mode
MASKED_HEAD = 3
MASKED_TAIL = 2


class PhoneVisibilityMode(str, Enum):
    full = "full"
    masked = "masked"
    hidden = "hidden"


def mask_phone_number(
    phone: Optional[str],
    mode: PhoneVisibilityMode | str,
    mask_char: str = MASK_CHAR,
    hidden_length: int = HIDDEN_PHONE_LENGTH,
) -> str:
    """
    Render a phone number for display.

    Args:
        phone: Raw phone string, may be None or empty
        mode: Visibility mode; unknown values are treated as masked
        mask_char: Placeholder character
        hidden_length: Placeholder length in hidden mode

    Returns:
        The display string. Empty input always yields an empty string.
        Short inputs come back fully masked, so they share no character with
        the input unless the input already contains ``mask_char``.
    """
    if not phone:
        return ""

    try:
        mode = PhoneVisibilityMode(mode)
    except ValueError:
        mode = PhoneVisibilityMode.masked

    if mode == PhoneVisibilityMode.full:
        return phone
    if mode == PhoneVisibilityMode.hidden:
        # Constant length so the real number's length is not revealed
        return mask_char * hidden_length

    if len(phone) <= MASKED_HEAD + MASKED_TAIL:
        return mask_char * len(phone)
    return (
        phone[:MASKED_HEAD]
        + mask_char * (len(phone) - MASKED_HEAD - MASKED_TAIL)
        + phone[-MASKED_TAIL:]
    )
