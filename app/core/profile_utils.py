# app/core/profile_utils.py
import uuid
from urllib.parse import urlparse

DICEBEAR_URL = "https://api.dicebear.com/7.x/fun-emoji/svg"


def generate_random_avatar_url() -> str:
    """
    Random avatar URL using the DiceBear fun-emoji style.

    Returns:
        A URL like "https://api.dicebear.com/7.x/fun-emoji/svg?seed=<seed>"
    """
    seed = uuid.uuid4().hex[:13]
    return f"{DICEBEAR_URL}?seed={seed}"


def generate_initials(full_name: str | None, fallback_email: str) -> str:
    """
    Initials from a full name, falling back to the email's first letter
    if the name is empty.

    Example:
        "John Michael Doe" -> "JMD"
        "", "test@example.com" -> "T"
    """
    words = (full_name or "").split()
    if words:
        return "".join(word[0] for word in words).upper()
    return fallback_email[:1].upper()


EDITABLE_FIELDS = ("full_name", "avatar_url")


def sanitize_profile_data(data: dict) -> dict:
    """
    Keep only user-editable profile fields and trim their string values.

    Example:
        {"full_name": "  Ann  ", "email": "x@y"} -> {"full_name": "Ann"}
    """
    cleaned = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        cleaned[key] = value.strip() if isinstance(value, str) else value
    return cleaned


def is_valid_avatar_url(url: str) -> bool:
    """
    An avatar URL is valid if it is blank (the field is optional) or an
    absolute http(s) URL with a hostname.
    """
    if not url.strip():
        return True
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)
