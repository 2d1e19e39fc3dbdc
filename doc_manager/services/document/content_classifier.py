"""Text/binary classification of blob payloads."""

from dataclasses import dataclass
from typing import Optional

TEXT_ENCODING = "utf-8"

TEXT_EXTENSION = "txt"
BINARY_EXTENSION = "bin"


@dataclass(frozen=True)
class Classification:
    """Result of classifying a payload: decoded text, or binary."""

    text: Optional[str] = None

    @property
    def is_binary(self) -> bool:
        return self.text is None

    @property
    def extension(self) -> str:
        return BINARY_EXTENSION if self.is_binary else TEXT_EXTENSION


BINARY = Classification()


def classify(data: bytes) -> Classification:
    """Text iff the whole payload decodes as strict UTF-8."""
    try:
        return Classification(text=data.decode(TEXT_ENCODING))
    except UnicodeDecodeError:
        return BINARY
