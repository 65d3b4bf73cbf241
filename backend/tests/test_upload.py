"""Tests for collecting upload input and encoding images."""

from io import BytesIO

import pytest
from PIL import Image

from assist_learning.generator import decode_image
from assist_learning.upload import UploadDraft, to_data_url


def png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (2, 2), color=(200, 10, 10)).save(buf, format="PNG")
    return buf.getvalue()


def test_to_data_url_detects_format() -> None:
    data = png_bytes()
    url = to_data_url(data)
    assert url.startswith("data:image/png;base64,")
    assert decode_image(url) == data


def test_to_data_url_rejects_non_images() -> None:
    with pytest.raises(ValueError):
        to_data_url(b"definitely not an image")


def test_draft_add_and_remove_images(tmp_path) -> None:
    path = tmp_path / "board.png"
    path.write_bytes(png_bytes())

    draft = UploadDraft()
    draft.add_image(png_bytes())
    draft.add_image_file(path)
    assert len(draft.images) == 2

    draft.remove_image(5)
    assert len(draft.images) == 2
    draft.remove_image(0)
    assert len(draft.images) == 1


def test_draft_completeness() -> None:
    assert not UploadDraft().is_complete
    assert not UploadDraft(title="t").is_complete
    assert not UploadDraft(title=" ", source_reference="https://x").is_complete
    assert UploadDraft(title="t", source_reference="https://x").is_complete
