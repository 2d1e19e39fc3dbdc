from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Externally visible document.

    Serialized with camelCase keys: ``{id, content, attachmentRef, isBinary}``.
    """

    id: str = Field(..., description="Unique document identifier")
    content: Optional[str] = Field(
        None,
        description="Text payload; null when the stored payload is binary",
    )
    attachment_ref: Optional[str] = Field(
        None,
        alias="attachmentRef",
        description="Blob key of the uploaded attachment, usable with the download route",
    )
    is_binary: bool = Field(
        False,
        alias="isBinary",
        description="Whether the stored payload failed to decode as UTF-8",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f2b9c1e-8d4a-4b7e-9f61-2c0a5d7e4b18",
                "content": "hello",
                "attachmentRef": "3f2b9c1e-8d4a-4b7e-9f61-2c0a5d7e4b18_img.png",
                "isBinary": False,
            }
        },
    )


@dataclass(frozen=True)
class UploadedFile:
    """An attachment received with a create or update request."""

    filename: Optional[str]
    data: bytes


@dataclass(frozen=True)
class DocumentDownload:
    """Raw bytes of a blob plus what the response needs to serve them."""

    key: str
    data: bytes
    filename: str
    is_binary: bool

    @property
    def media_type(self) -> str:
        return "application/octet-stream" if self.is_binary else "text/plain; charset=utf-8"

    @property
    def content_disposition(self) -> str:
        """RFC 6266 header value: ASCII ``filename`` plus UTF-8 ``filename*``.

        Header values travel as latin-1, so non-ASCII names only survive in
        the percent-encoded ``filename*`` parameter.
        """
        fallback = self.filename.encode("ascii", "replace").decode("ascii")
        fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
        return (
            f'attachment; filename="{fallback}"; '
            f"filename*=UTF-8''{quote(self.filename, safe='')}"
        )
