import re
from typing import Optional

from autowhiz.core.errors import ValidationError

VIN_LENGTH = 17
_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")
_DISALLOWED = re.compile(r"[IOQ]")

# ISO 3779 transliteration and position weights for the check digit (position 9)
_TRANSLITERATION = {
    "A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6, "G": 7, "H": 8,
    "J": 1, "K": 2, "L": 3, "M": 4, "N": 5, "P": 7, "R": 9,
    "S": 2, "T": 3, "U": 4, "V": 5, "W": 6, "X": 7, "Y": 8, "Z": 9,
}
_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)


def normalize_vin(vin: Optional[str]) -> str:
    """Uppercase and strip everything that is not A-Z or 0-9."""
    return _NON_ALPHANUMERIC.sub("", (vin or "").upper())


def vin_error(vin: str) -> Optional[str]:
    """Why a normalized VIN is unusable, or None if it is well-formed."""
    if len(vin) != VIN_LENGTH:
        return "VIN must be exactly 17 characters"
    if _DISALLOWED.search(vin):
        return "VIN contains invalid characters (I, O, or Q)"
    return None


def is_valid_vin(vin: str) -> bool:
    return vin_error(vin) is None


def validate_vin(vin: Optional[str]) -> str:
    """Normalize and validate; raises ValidationError on a malformed VIN."""
    if not vin:
        raise ValidationError("VIN parameter is required")
    clean = normalize_vin(vin)
    error = vin_error(clean)
    if error:
        raise ValidationError(error)
    return clean


def compute_check_digit(vin: str) -> str:
    total = 0
    for char, weight in zip(vin, _WEIGHTS):
        value = int(char) if char.isdigit() else _TRANSLITERATION.get(char, 0)
        total += value * weight
    remainder = total % 11
    return "X" if remainder == 10 else str(remainder)


def has_valid_check_digit(vin: str) -> bool:
    """North American VINs carry a check digit in position 9. Others may not."""
    return len(vin) == VIN_LENGTH and vin[8] == compute_check_digit(vin)
