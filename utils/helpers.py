import re

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
ERROR_PREFIX_PATTERN = re.compile(r"^(fatal|error):\s*", re.IGNORECASE)
REMOTE_PREFIX = "origin/"


def extract_error_message(stderr):
    """Turns git's stderr into a one-line, user-facing message."""
    message = (stderr or "").strip()
    if not message:
        return UNKNOWN_ERROR_MESSAGE

    message = message.splitlines()[0].strip()
    # "fatal: not a git repository" -> "Not a git repository"
    message = ERROR_PREFIX_PATTERN.sub("", message, count=1)
    message = ERROR_PREFIX_PATTERN.sub("", message, count=1)

    if message and message[0].islower():
        message = message[0].upper() + message[1:]
    return message or UNKNOWN_ERROR_MESSAGE


def quote_argument(value):
    """Wraps a value in double quotes for a git argument string."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_branch_display(branch_status):
    return f"{branch_status.name} ↑{branch_status.ahead_by} ↓{branch_status.behind_by}"


def display_branch_name(name):
    """Strips the remote prefix so 'origin/main' is listed as 'main'."""
    if name.startswith(REMOTE_PREFIX):
        return name[len(REMOTE_PREFIX):]
    return name
