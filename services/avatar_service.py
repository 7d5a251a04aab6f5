"""
Avatar helpers: identicon fallback URLs, initials, upload validation and
JPEG compression before the file lands in the avatar bucket.
"""

import io
from urllib.parse import quote

from PIL import Image

from config import settings

AVATAR_STYLES = ("avataaars", "bottts", "identicon", "initials", "pixel-art")
VALID_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")


class AvatarService:

    @staticmethod
    def dicebear_url(seed: str, style: str = None) -> str:
        style = style or settings.DICEBEAR_STYLE
        if style not in AVATAR_STYLES:
            raise ValueError(f"Unknown avatar style: {style}")
        base = settings.DICEBEAR_BASE_URL.rstrip("/")
        return f"{base}/7.x/{style}/svg?seed={quote(seed, safe='')}"

    @staticmethod
    def avatar_url(avatar_url, name: str) -> str:
        if avatar_url and avatar_url.strip():
            return avatar_url
        return AvatarService.dicebear_url(name or "user")

    @staticmethod
    def initials(name: str) -> str:
        if not name or not name.strip():
            return "??"
        parts = name.strip().split()
        if len(parts) >= 2:
            return (parts[0][0] + parts[-1][0]).upper()
        return name.strip()[:2].upper()

    @staticmethod
    def validate_image(content_type: str, size: int, max_size_mb: int = None):
        """Return None when the upload is acceptable, else the error message."""
        max_size_mb = max_size_mb or settings.AVATAR_MAX_SIZE_MB
        if content_type not in VALID_IMAGE_TYPES:
            return "Invalid file type. Please upload a JPEG, PNG, GIF, or WebP image."
        if size > max_size_mb * 1024 * 1024:
            return f"File size exceeds {max_size_mb}MB. Please choose a smaller image."
        return None

    @staticmethod
    def compress_image(data: bytes, max_width: int = 400, max_height: int = 400,
                       quality: int = 80) -> bytes:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            if width > height:
                if width > max_width:
                    height = round(height * max_width / width)
                    width = max_width
            elif height > max_height:
                width = round(width * max_height / height)
                height = max_height

            resized = img.convert("RGB").resize((max(width, 1), max(height, 1)))
            out = io.BytesIO()
            resized.save(out, format="JPEG", quality=quality)
            return out.getvalue()
