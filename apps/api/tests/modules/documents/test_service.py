"""
Unit tests for document validation, upload and link resolution.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from coop_portal.core.storage import StorageError, StorageService
from coop_portal.modules.documents.service import (
    DocumentCategory,
    DocumentValidationError,
    build_path,
    is_owned_by,
    resolve,
    upload,
    validate_file,
)
from coop_portal.modules.shared.errors import UpstreamServiceError

MB = 1024 * 1024


@pytest.fixture
def storage():
    storage = MagicMock(spec=StorageService)
    storage.upload_file = AsyncMock(return_value="ok")
    storage.get_download_url = AsyncMock(return_value="https://storage.test/signed")
    storage.delete_file = AsyncMock()
    return storage


class TestValidateFile:
    """Tests for size and type checks."""

    def test_pdf_under_limit_is_accepted(self):
        assert validate_file(4 * MB, "application/pdf") is None

    def test_oversized_file_is_rejected(self):
        error = validate_file(6 * MB, "application/pdf")
        assert isinstance(error, DocumentValidationError)
        assert error.error_code == "FILE_TOO_LARGE"
        assert "5MB" in error.message
        assert error.status_code == 422

    def test_executable_is_rejected(self):
        error = validate_file(10_000, "application/x-msdownload")
        assert error.error_code == "INVALID_FILE_TYPE"

    def test_missing_content_type_is_rejected(self):
        assert validate_file(10_000, None).error_code == "INVALID_FILE_TYPE"

    def test_content_type_is_case_insensitive(self):
        assert validate_file(10_000, "IMAGE/PNG") is None


class TestPaths:
    """Tests for object path layout."""

    def test_path_layout(self):
        owner = uuid4()
        path = build_path(owner, DocumentCategory.BYLAWS, "application/pdf")

        assert path.startswith(f"{owner}/bylaws_")
        assert path.endswith(".pdf")
        assert is_owned_by(path, owner)
        assert not is_owned_by(path, uuid4())

    def test_docx_extension(self):
        path = build_path(
            uuid4(),
            DocumentCategory.CV,
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )
        assert path.endswith(".docx")


# ============================================================================
# upload / resolve
# ============================================================================


@pytest.mark.asyncio
async def test_upload_stores_and_returns_signed_url(storage):
    owner = uuid4()

    document = await upload(
        storage,
        b"%PDF-1.4 test",
        content_type="application/pdf",
        filename="bylaws.pdf",
        owner_id=owner,
        category=DocumentCategory.BYLAWS,
    )

    assert document.path.startswith(f"{owner}/bylaws_")
    assert document.url == "https://storage.test/signed"
    storage.upload_file.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_upload_never_reaches_storage(storage):
    with pytest.raises(DocumentValidationError):
        await upload(
            storage,
            b"MZ",
            content_type="application/x-msdownload",
            filename="setup.exe",
            owner_id=uuid4(),
            category=DocumentCategory.EVIDENCE,
        )

    storage.upload_file.assert_not_called()


@pytest.mark.asyncio
async def test_storage_failure_becomes_upstream_error(storage):
    storage.upload_file = AsyncMock(side_effect=StorageError("bucket unreachable"))

    with pytest.raises(UpstreamServiceError):
        await upload(
            storage,
            b"data",
            content_type="image/png",
            filename="id.png",
            owner_id=uuid4(),
            category=DocumentCategory.ID_COPY,
        )


@pytest.mark.asyncio
async def test_resolve_empty_path(storage):
    assert await resolve(storage, None) is None
    assert await resolve(storage, "") is None
    storage.get_download_url.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_uses_one_hour_expiry(storage):
    await resolve(storage, "u1/bylaws_1.pdf")
    storage.get_download_url.assert_awaited_once_with("u1/bylaws_1.pdf", 3600)
