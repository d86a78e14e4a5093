"""Image → transport-safe payload."""
import base64
from dataclasses import dataclass

from chart_analyzer.constants import DEFAULT_IMAGE_MEDIA_TYPE

# (magic prefix, media type); WEBP is checked separately (RIFF....WEBP)
_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


@dataclass(frozen=True)
class EncodedImage:
    data: str
    media_type: str

    def to_bytes(self) -> bytes:
        return base64.standard_b64decode(self.data)


def sniff_media_type(raw: bytes) -> str | None:
    match raw[:4], raw[8:12]:
        case (b"RIFF", b"WEBP"):
            return "image/webp"
        case _:
            pass
    return next(
        (media_type for magic, media_type in _SIGNATURES if raw.startswith(magic)),
        None,
    )


def encode_image(raw: bytes, media_type: str | None = None) -> EncodedImage:
    """Base64-encode ``raw``; the media type is sniffed when not declared."""
    resolved = media_type or sniff_media_type(raw) or DEFAULT_IMAGE_MEDIA_TYPE
    return EncodedImage(
        data=base64.standard_b64encode(raw).decode(),
        media_type=resolved,
    )

