# client/services/validation.py

from typing import Optional, Tuple


USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6

# Client-side storage keys
USERNAME_KEY = "GENMON_USERNAME"
TOKEN_KEY = "GENMON_AUTH_TOKEN"
USER_ID_KEY = "GENMON_USER_ID"
IS_ADMIN_KEY = "GENMON_IS_ADMIN"

MODE_LABELS = {"login": "Login", "register": "Registration"}


def validate_form(mode: str, username: str, password: str, confirm_password: str = "") -> Optional[str]:
    """
    Checks the form before anything is sent.
    Returns an error message, or None when the input may be submitted.
    """
    if not username.strip() or not password.strip():
        return "Please enter a username and password"

    if mode == "register":
        username = username.strip()
        if password != confirm_password:
            return "The two passwords do not match"
        if len(password) < PASSWORD_MIN_LENGTH:
            return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            return f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"

    return None


def error_detail(data: dict, mode: str) -> str:
    """
    Builds the message shown for a failed request from the server's body.
    The server's own wording is kept; `error` and `message` are combined
    when both are present and differ.
    """
    error = data.get("error")
    message = data.get("message")
    if message and message != error:
        return f"{error or MODE_LABELS[mode] + ' failed'}: {message}"
    return error or message or f"{MODE_LABELS[mode]} failed"


def interpret_auth_response(mode: str, status_code: int, data: Optional[dict], raw_text: str = "") -> Tuple[Optional[str], Optional[dict]]:
    """
    Turns an auth response into (error, stored_credentials).
    Exactly one of the two is None.
    """
    if data is None:
        return f"Server error ({status_code}): {raw_text or 'unable to parse response'}", None

    if not 200 <= status_code < 300:
        return error_detail(data, mode), None

    if not data.get("username") or not data.get("token"):
        return "Incomplete response from the server, please try again", None

    return None, {
        USERNAME_KEY: data["username"],
        TOKEN_KEY: data["token"],
        USER_ID_KEY: str(data.get("userId") or ""),
        IS_ADMIN_KEY: "true" if mode == "login" and data.get("isAdmin") else "false",
    }
