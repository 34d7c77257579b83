from typing import Optional

import phonenumbers


def to_e164(raw: Optional[str], default_region: str = "US") -> str:
    """Normalize a raw phone number to E.164 format (e.g., +14155550123).

    Args:
        raw: The raw phone number input from the user.
        default_region: Region to assume if the number is provided without a country code.

    Returns:
        The E.164 formatted phone number string.

    Raises:
        ValueError: If the phone number is empty, cannot be parsed or is invalid for the given region.
    """
    if raw is None or not str(raw).strip():
        raise ValueError("Phone number is required")
    try:
        parsed = phonenumbers.parse(str(raw).strip(), default_region)
    except phonenumbers.NumberParseException as exc:
        raise ValueError(str(exc))

    if not phonenumbers.is_valid_number(parsed):
        raise ValueError("Invalid phone number")

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
