"""Intake and login form validation."""

import re
from typing import Optional

from .errors import ValidationError
from .models import DEPARTMENTS, MARITAL_STATES, SEXES, PatientProfile


EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
INTEGER_REGEX = re.compile(r"^[+-]?\d+$")

MIN_AGE = 18
MAX_AGE = 100
MIN_PASSWORD_LENGTH = 8

NUMERIC_FIELDS = ("age", "child_count", "years_experience", "years_in_current_department")
CHOICE_FIELDS = {
    "sex": SEXES,
    "marital_state": MARITAL_STATES,
    "department": DEPARTMENTS,
}

FIELD_LABELS = {
    "age": "Age",
    "sex": "Sex",
    "marital_state": "Marital state",
    "child_count": "Number of children",
    "years_experience": "Years of experience",
    "department": "Department",
    "years_in_current_department": "Years in current department",
}


def parse_count(raw: Optional[str]) -> Optional[int]:
    """Parse a numeric form field. Blank or non-integer text stays unset."""
    if raw is None:
        return None
    raw = raw.strip()
    if not INTEGER_REGEX.match(raw):
        return None
    return int(raw)


def parse_choice(raw: Optional[str]) -> Optional[str]:
    """Normalise a choice field; blank means unset."""
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def update_profile(profile: PatientProfile, field_name: str, raw: Optional[str]) -> None:
    """Set one profile field from its raw form value."""
    if field_name in NUMERIC_FIELDS:
        setattr(profile, field_name, parse_count(raw))
    elif field_name in CHOICE_FIELDS:
        setattr(profile, field_name, parse_choice(raw))
    else:
        raise KeyError(f"Unknown profile field: {field_name}")


def validate_profile(profile: PatientProfile) -> dict[str, str]:
    """Validate a profile as a whole.

    Returns an empty dict when every field is valid, otherwise a mapping of
    field name to a human readable message. Runs before any network call.
    """
    errors: dict[str, str] = {}

    if profile.age is None:
        errors["age"] = "Age is required"
    elif profile.age < MIN_AGE:
        errors["age"] = f"Age must be at least {MIN_AGE}"
    elif profile.age > MAX_AGE:
        errors["age"] = f"Age must be at most {MAX_AGE}"

    for name, choices in CHOICE_FIELDS.items():
        value = getattr(profile, name)
        if not value:
            errors[name] = f"{FIELD_LABELS[name]} is required"
        elif value not in choices:
            errors[name] = f"{FIELD_LABELS[name]} must be one of: {', '.join(choices)}"

    for name in NUMERIC_FIELDS[1:]:
        value = getattr(profile, name)
        if value is None:
            errors[name] = f"{FIELD_LABELS[name]} is required"
        elif value < 0:
            errors[name] = f"{FIELD_LABELS[name]} cannot be negative"

    return errors


def validate_login(email: Optional[str], password: Optional[str]) -> dict[str, str]:
    """Validate the sign-in form."""
    errors: dict[str, str] = {}
    email = (email or "").strip()
    password = password or ""

    if not email:
        errors["email"] = "Email is required"
    elif not EMAIL_REGEX.match(email):
        errors["email"] = "Invalid email format"

    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

    return errors


def require_valid_profile(profile: PatientProfile) -> None:
    """Raise ValidationError carrying the field messages when the profile is invalid."""
    errors = validate_profile(profile)
    if errors:
        raise ValidationError(errors)
