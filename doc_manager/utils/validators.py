import re
from typing import Optional


class ValidationError(Exception):
    """Custom validation error."""

    pass


MAX_FILENAME_LENGTH = 255


def sanitize_filename(filename: Optional[str]) -> Optional[str]:
    """
    Sanitize an uploaded filename for use inside a blob key.

    Path components are dropped, reserved and control characters removed
    and the result is capped at 255 characters keeping the extension.

    Args:
        filename: Filename as sent by the client

    Returns:
        Sanitized filename, or None when nothing usable remains
    """
    if not filename:
        return None

    if not isinstance(filename, str):
        raise ValidationError("Filename must be a string")

    # Keep only the last path component
    filename = re.split(r"[\\/]", filename)[-1]

    # Remove dangerous characters
    filename = re.sub(r'[<>:"|?*]', "", filename)

    # Remove control characters
    filename = re.sub(r"[\x00-\x1f\x7f]", "", filename)

    filename = filename.strip().strip(".")

    if len(filename) > MAX_FILENAME_LENGTH:
        name, ext = filename.rsplit(".", 1) if "." in filename else (filename, "")
        filename = name[: MAX_FILENAME_LENGTH - 5 - len(ext)] + ("." + ext if ext else "")

    return filename or None


__all__ = [
    "ValidationError",
    "sanitize_filename",
]
