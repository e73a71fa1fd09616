"""
Tests for reading the selected photo and for the picker adapters.
"""
import asyncio

import pytest

from fortune_uploader.core.image_ops import decode_bounds, read_image
from fortune_uploader.core.picker import HostPhotoPicker, PathPhotoPicker
from fortune_uploader.errors import ReadError
from fortune_uploader.models import UploadOptions


class TestReadImage:
    def test_reads_bytes_and_bounds(self, photo_path):
        payload = read_image(photo_path)

        assert payload.data == photo_path.read_bytes()
        assert (payload.width, payload.height) == (64, 48)
        assert payload.size_bytes == photo_path.stat().st_size

    def test_garbage_gives_zero_bounds(self):
        assert decode_bounds(b"not an image") == (0, 0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReadError) as exc_info:
            read_image(tmp_path / "nope.jpg")

        assert exc_info.value.message.startswith("Error reading image:")


class TestPathPhotoPicker:
    @pytest.mark.asyncio
    async def test_existing_file(self, photo_path):
        picked = await PathPhotoPicker().pick("1", UploadOptions(source=str(photo_path)))

        assert picked == photo_path

    @pytest.mark.asyncio
    async def test_non_file_source_is_cancel(self, tmp_path):
        picker = PathPhotoPicker()

        assert await picker.pick("1", UploadOptions(source="photos")) is None
        assert await picker.pick("2", UploadOptions(source=str(tmp_path))) is None
        assert await picker.pick("3", UploadOptions()) is None


class TestHostPhotoPicker:
    @pytest.mark.asyncio
    async def test_selection_delivered(self, photo_path):
        launched = []
        picker = HostPhotoPicker(launcher=lambda rid, opts: launched.append(rid))

        task = asyncio.create_task(picker.pick("7", UploadOptions()))
        await asyncio.sleep(0)

        assert picker.is_waiting("7")
        assert picker.deliver_selection("7", str(photo_path)) is True
        assert await task == photo_path
        assert launched == ["7"]
        assert not picker.is_waiting("7")

    @pytest.mark.asyncio
    async def test_cancellation_delivered(self):
        picker = HostPhotoPicker()
        picker.open("8")

        assert picker.deliver_cancellation("8") is True
        assert await picker.pick("8", UploadOptions()) is None

    @pytest.mark.asyncio
    async def test_result_for_unknown_request_is_ignored(self, photo_path):
        picker = HostPhotoPicker()

        assert picker.deliver_selection("99", str(photo_path)) is False
        assert picker.deliver_cancellation("99") is False

    @pytest.mark.asyncio
    async def test_second_result_is_ignored(self):
        picker = HostPhotoPicker()
        picker.open("5")

        assert picker.deliver_cancellation("5") is True
        assert picker.deliver_cancellation("5") is False

    @pytest.mark.asyncio
    async def test_discard_drops_waiting_request(self):
        picker = HostPhotoPicker()
        picker.open("6")

        picker.discard("6")

        assert not picker.is_waiting("6")
        assert picker.deliver_cancellation("6") is False
