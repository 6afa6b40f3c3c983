import pytest
from fastapi import HTTPException

from dietcraft.core.rules import MAX_LOGO_BYTES
from dietcraft.models import BrandingSettings
from dietcraft.services.branding_service import BrandingService
from dietcraft.services.logo_service import LOGOS_COLLECTION, LogoService, logo_id_from_url, safe_filename
from dietcraft.services.stores.base import DocumentNotFoundError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def logos(memory_store):
    return LogoService(memory_store)


@pytest.mark.parametrize("filename,expected", [
    ("logo.png", "logo.png"),
    ("my logo.png", "my_logo.png"),
    ("../../etc/passwd", "passwd"),
    ("C:\\Users\\me\\brand.svg", "brand.svg"),
    ("", "logo"),
    (None, "logo"),
])
def test_safe_filename(filename, expected):
    assert safe_filename(filename) == expected


def test_upload_stores_file_and_sets_logo_url(logos, memory_store):
    branding = logos.upload("u1", "logo.png", "image/png", PNG_BYTES)

    logo_id = logo_id_from_url(branding.logo_url)
    assert logo_id.startswith("u1/")
    assert logo_id.endswith("-logo.png")

    stored = logos.get(logo_id)
    assert stored["data"] == PNG_BYTES
    assert stored["content_type"] == "image/png"
    assert stored["size"] == len(PNG_BYTES)
    assert BrandingService(memory_store).get("u1").logo_url == branding.logo_url


def test_upload_keeps_other_branding(logos, memory_store):
    BrandingService(memory_store).save("u1", BrandingSettings(business_name="Green Plate"))

    branding = logos.upload("u1", "logo.svg", "image/svg+xml", b"<svg></svg>")

    assert branding.business_name == "Green Plate"


def test_jpg_alias_served_as_jpeg(logos):
    branding = logos.upload("u1", "logo.jpg", "image/jpg", b"\xff\xd8\xff")
    assert logos.get(logo_id_from_url(branding.logo_url))["content_type"] == "image/jpeg"


def test_new_upload_replaces_old_file(logos, memory_store):
    first = logos.upload("u1", "logo.png", "image/png", PNG_BYTES)
    second = logos.upload("u1", "logo.png", "image/png", PNG_BYTES)

    assert first.logo_url != second.logo_url
    assert memory_store.get(LOGOS_COLLECTION, logo_id_from_url(first.logo_url)) is None
    assert logos.get(logo_id_from_url(second.logo_url))["data"] == PNG_BYTES


@pytest.mark.parametrize("content_type,content,code", [
    ("image/png", b"", "LOGO_REQUIRED"),
    ("image/gif", b"GIF89a", "INVALID_LOGO_TYPE"),
    (None, PNG_BYTES, "INVALID_LOGO_TYPE"),
    ("image/png", b"x" * (MAX_LOGO_BYTES + 1), "LOGO_TOO_LARGE"),
])
def test_rejected_uploads_store_nothing(logos, memory_store, content_type, content, code):
    with pytest.raises(HTTPException) as exc:
        logos.upload("u1", "logo.png", content_type, content)

    assert exc.value.status_code == 400
    assert exc.value.detail["error_code"] == code
    assert memory_store.find(LOGOS_COLLECTION) == []


def test_file_at_size_limit_is_accepted(logos):
    branding = logos.upload("u1", "logo.png", "image/png", b"x" * MAX_LOGO_BYTES)
    assert branding.logo_url


def test_remove_clears_url_and_file(logos, memory_store):
    branding = logos.upload("u1", "logo.png", "image/png", PNG_BYTES)

    cleared = logos.remove("u1")

    assert cleared.logo_url == ""
    with pytest.raises(DocumentNotFoundError):
        logos.get(logo_id_from_url(branding.logo_url))


def test_external_logo_url_is_left_alone(logos, memory_store):
    BrandingService(memory_store).save("u1", BrandingSettings(logo_url="https://cdn.example.com/logo.png"))
    assert logos.remove("u1").logo_url == ""


def test_other_users_logo_is_never_deleted(logos, memory_store):
    theirs = logos.upload("u2", "logo.png", "image/png", PNG_BYTES)
    BrandingService(memory_store).save("u1", BrandingSettings(logo_url=theirs.logo_url))

    logos.upload("u1", "logo.png", "image/png", PNG_BYTES)

    assert logos.get(logo_id_from_url(theirs.logo_url))["data"] == PNG_BYTES
