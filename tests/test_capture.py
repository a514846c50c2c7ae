import io

import pytest
from PIL import Image

from kyc_flow.capture import load_captured_image


def write_image(path, fmt):
    Image.new("RGB", (64, 48), color=(200, 30, 30)).save(path, fmt)
    return path


def test_jpeg_passes_through_unchanged(tmp_path):
    path = write_image(tmp_path / "front.jpg", "JPEG")
    image = load_captured_image(str(path))
    assert image.mime == "image/jpeg"
    assert image.data == path.read_bytes()


def test_png_passes_through_unchanged(tmp_path):
    path = write_image(tmp_path / "front.PNG", "PNG")
    image = load_captured_image(str(path))
    assert image.mime == "image/png"
    assert image.data == path.read_bytes()


def test_other_formats_are_converted_to_jpeg(tmp_path):
    path = write_image(tmp_path / "selfie.bmp", "BMP")
    image = load_captured_image(str(path))
    assert image.mime == "image/jpeg"
    with Image.open(io.BytesIO(image.data)) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.size == (64, 48)


def test_unsupported_extension(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    with pytest.raises(ValueError):
        load_captured_image(str(path))


def test_repr_hides_bytes(tmp_path):
    path = write_image(tmp_path / "front.jpg", "JPEG")
    image = load_captured_image(str(path))
    assert "mime='image/jpeg'" in repr(image)
    assert str(image.size) in repr(image)
