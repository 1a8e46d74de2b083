import re

from catalog_api.errors import ApiError
from catalog_api.shared_functions import utc_now

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,6}$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d]{8,}$")


def read_text(payload: dict, field: str):
    """
    Read a string field from a request body, stripped of surrounding whitespace.

    Args:
        payload (dict): Request body.
        field (str): Field name.

    Returns:
        str: Stripped value, empty when the field is missing.

    Raises:
        ApiError: When the field holds something other than a string.
    """
    value = payload.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ApiError(f"{field} must be a string")
    return value.strip()


def is_valid_email(email: str):
    return bool(EMAIL_PATTERN.match(email or ""))


def is_strong_password(password: str):
    """
    Check the password policy: at least 8 letters or digits with one of each.

    Args:
        password (str): Plaintext password.

    Returns:
        bool: True when the policy holds.
    """
    return bool(PASSWORD_PATTERN.match(password or ""))


def build_new_user(username: str, email: str, password_hash: str, role: str):
    """
    Build the document stored for a newly registered user.

    Args:
        username (str): Unique username.
        email (str): Unique email address.
        password_hash (str): Hashed password, never the plaintext.
        role (str): ``user`` or ``admin``.

    Returns:
        dict: Document ready for insertion.
    """
    return {
        "username": username,
        "email": email,
        "password": password_hash,
        "profile": {
            "nickName": "",
            "bio": "",
            "favoriteGenres": [],
            "favoriteActors": [],
        },
        "role": role,
        "wishlist": [],
        "customLists": [],
        "remindersForNewReleases": True,
        "sendNotifications": True,
        "createdAt": utc_now(),
    }
