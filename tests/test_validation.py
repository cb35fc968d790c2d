"""
Tests for response validation, decoding and pre-dispatch checks.
"""

from datetime import datetime

import pytest
from pydantic import BaseModel

from apikit.models.endpoint import Endpoint, UploadFile
from apikit.models.response import BusinessEnvelope, RawResponse
from apikit.normalizer import (
    DecodeFailure,
    FileWriteFailure,
    MissingFileFailure,
    StatusCodeFailure,
)
from apikit.validation import (
    NO_DESTINATION,
    check_download_destination,
    check_upload_files,
    convert,
    decode,
    validate,
)


class Item(BaseModel):
    id: int
    tags: list[str] = []


class TestValidate:
    """Tests for status validation."""

    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_accepts_2xx(self, status):
        raw = RawResponse(status_code=status)
        assert validate(raw) is raw

    @pytest.mark.parametrize("status", [100, 199, 300, 401, 500])
    def test_rejects_others(self, status):
        with pytest.raises(StatusCodeFailure) as exc:
            validate(RawResponse(status_code=status))
        assert exc.value.status_code == status


class TestDecode:
    """Tests for JSON decoding."""

    def test_model(self):
        raw = RawResponse(status_code=200, body=b'{"id": 3, "tags": ["a"]}')
        assert decode(raw, Item) == Item(id=3, tags=["a"])

    def test_builtin_types(self):
        assert decode(RawResponse(status_code=200, body=b"[1, 2]"), list[int]) == [1, 2]
        assert decode(RawResponse(status_code=200, body=b'{"a": 1}'), dict) == {"a": 1}

    def test_empty_body(self):
        with pytest.raises(DecodeFailure):
            decode(RawResponse(status_code=200, body=b""), Item)

    def test_invalid_json(self):
        with pytest.raises(DecodeFailure) as exc:
            decode(RawResponse(status_code=200, body=b"{not json"), Item)
        assert exc.value.cause is not None

    def test_envelope(self):
        raw = RawResponse(status_code=200, body=b'{"code": 5, "msg": "nope", "data": null}')
        envelope = decode(raw, BusinessEnvelope[Item])
        assert envelope.code == 5
        assert envelope.data is None

    def test_convert(self):
        assert convert({"id": 1}, Item) == Item(id=1)
        with pytest.raises(DecodeFailure):
            convert(None, Item)

    def test_epoch_datetime_rejected(self):
        class Stamped(BaseModel):
            at: datetime

        assert decode(RawResponse(status_code=200, body=b'{"at": "2024-03-01T12:30:00+00:00"}'), Stamped)
        with pytest.raises(DecodeFailure):
            decode(RawResponse(status_code=200, body=b'{"at": 1700000000}'), Stamped)
        with pytest.raises(DecodeFailure):
            convert({"at": 1700000000}, Stamped)


class TestCheckUploadFiles:
    """Tests for upload pre-validation."""

    def test_in_memory_data(self):
        check_upload_files((UploadFile.from_bytes(b"x", "f", "a.txt", "text/plain"),))

    def test_existing_path(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("hello")
        check_upload_files((UploadFile.from_path(path, name="f"),))

    def test_missing_path(self, tmp_path):
        missing = tmp_path / "gone.txt"
        with pytest.raises(MissingFileFailure) as exc:
            check_upload_files((UploadFile.from_path(missing, name="f"),))
        assert exc.value.path == str(missing)

    def test_empty_bytes_without_path(self):
        """Test zero-length data counts as no content."""
        file = UploadFile.from_bytes(b"", "f", "blank.bin", "x/y")
        with pytest.raises(MissingFileFailure) as exc:
            check_upload_files((file,))
        assert exc.value.path == "blank.bin"

    def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(MissingFileFailure):
            check_upload_files((UploadFile.from_path(tmp_path, name="f"),))

    def test_none(self):
        check_upload_files(None)


class TestCheckDownloadDestination:
    def test_missing(self):
        with pytest.raises(FileWriteFailure) as exc:
            check_download_destination(Endpoint(base_url="https://example.com"))
        assert exc.value.path == NO_DESTINATION

    def test_present(self, tmp_path):
        check_download_destination(
            Endpoint(base_url="https://example.com", download_destination=lambda t, r: tmp_path)
        )
