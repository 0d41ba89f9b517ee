"""Input rules for registration and login.

Messages mirror the field-error style clients of this API already
expect, e.g. ``{"email": ["The email has already been taken."]}``.
"""

from typing import Any

from email_validator import EmailNotValidError, validate_email

from authgate.services.errors import InputValidationError

MAX_STRING_LENGTH = 255
MIN_PASSWORD_LENGTH = 6

EMAIL_TAKEN_MESSAGE = "The email has already been taken."


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lower-case the whole address."""
    return email.strip().lower()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_string(
    errors: dict[str, list[str]],
    field: str,
    value: Any,
    *,
    min_length: int | None = None,
    max_length: int | None = None,
) -> bool:
    """Apply required/string/min/max rules. Returns True if ``value`` passed."""
    if _is_blank(value):
        errors.setdefault(field, []).append(f"The {field} field is required.")
        return False
    if not isinstance(value, str):
        errors.setdefault(field, []).append(f"The {field} field must be a string.")
        return False
    if min_length is not None and len(value) < min_length:
        errors.setdefault(field, []).append(
            f"The {field} field must be at least {min_length} characters."
        )
    if max_length is not None and len(value) > max_length:
        errors.setdefault(field, []).append(
            f"The {field} field must not be greater than {max_length} characters."
        )
    return field not in errors


def _check_email(errors: dict[str, list[str]], value: Any, *, max_length: int | None) -> None:
    if not _check_string(errors, "email", value, max_length=max_length):
        return
    try:
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        errors.setdefault("email", []).append("The email field must be a valid email address.")


def validate_registration(
    name: Any, email: Any, password: Any, password_confirmation: Any
) -> tuple[str, str, str]:
    """Validate registration input.

    Returns ``(name, normalized_email, password)``; raises
    InputValidationError with every failing field.
    """
    errors: dict[str, list[str]] = {}

    _check_string(errors, "name", name, max_length=MAX_STRING_LENGTH)
    _check_email(errors, email, max_length=MAX_STRING_LENGTH)
    if _check_string(errors, "password", password, min_length=MIN_PASSWORD_LENGTH):
        if password != password_confirmation:
            errors.setdefault("password", []).append(
                "The password field confirmation does not match."
            )

    if errors:
        raise InputValidationError(errors)
    return name.strip(), normalize_email(email), password


def validate_login(email: Any, password: Any) -> tuple[str, str]:
    """Validate login input. Returns ``(normalized_email, password)``."""
    errors: dict[str, list[str]] = {}

    _check_email(errors, email, max_length=None)
    _check_string(errors, "password", password, min_length=MIN_PASSWORD_LENGTH)

    if errors:
        raise InputValidationError(errors)
    return normalize_email(email), password
