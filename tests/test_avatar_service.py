import io
from pathlib import Path

import pytest
from PIL import Image

from config import settings
from services.auth_service import AuthError, AuthService
from services.avatar_service import AvatarService


def _png(width, height):
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), (200, 30, 30, 255)).save(buf, format="PNG")
    return buf.getvalue()


def test_dicebear_url_encodes_seed():
    url = AvatarService.dicebear_url("Jane Tech", "bottts")
    assert url.endswith("/7.x/bottts/svg?seed=Jane%20Tech")


def test_dicebear_rejects_unknown_style():
    with pytest.raises(ValueError):
        AvatarService.dicebear_url("x", "cartoon")


def test_avatar_url_prefers_uploaded_image():
    assert AvatarService.avatar_url("/media/avatars/1/a.jpg", "Jane") == "/media/avatars/1/a.jpg"
    assert "seed=Jane" in AvatarService.avatar_url("  ", "Jane")


@pytest.mark.parametrize("name, expected", [
    ("Jane Tech", "JT"),
    ("jane mary tech", "JT"),
    ("Plato", "PL"),
    ("", "??"),
    (None, "??"),
])
def test_initials(name, expected):
    assert AvatarService.initials(name) == expected


def test_validate_image():
    assert AvatarService.validate_image("image/png", 1024) is None
    assert "Invalid file type" in AvatarService.validate_image("application/pdf", 10)
    assert "exceeds 1MB" in AvatarService.validate_image("image/jpeg", 2 * 1024 * 1024, 1)


def test_compress_keeps_aspect_ratio():
    data = AvatarService.compress_image(_png(1000, 500))
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "JPEG"
        assert img.size == (400, 200)


def test_upload_and_delete_avatar():
    url = AuthService.upload_avatar(7, _png(50, 50))
    assert url.startswith(settings.AVATAR_BASE_URL + "/7/")

    stored = Path(settings.AVATAR_DIR) / url[len(settings.AVATAR_BASE_URL) + 1:]
    assert stored.exists()
    assert AuthService.delete_avatar(url) is True
    assert not stored.exists()
    assert AuthService.delete_avatar(url) is False


def test_delete_avatar_stays_inside_bucket():
    assert AuthService.delete_avatar(settings.AVATAR_BASE_URL + "/../../etc/passwd") is False
    assert AuthService.delete_avatar("https://example.com/a.jpg") is False


def test_sign_up_and_sign_in(db):
    profile = AuthService.sign_up(db, "New.User@Example.com", "pw123456", "New User")
    assert profile.email == "new.user@example.com"
    assert profile.role == "technician"
    assert profile.password != "pw123456"

    assert AuthService.sign_in(db, "new.user@example.com", "pw123456").id == profile.id
    with pytest.raises(AuthError, match="Invalid login credentials"):
        AuthService.sign_in(db, "new.user@example.com", "wrong")
    with pytest.raises(AuthError, match="User already registered"):
        AuthService.sign_up(db, "new.user@example.com", "other123", "Dup")
