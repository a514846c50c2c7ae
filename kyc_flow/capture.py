import io
from typing import Optional
from PIL import Image
import pillow_heif
from pdf2image import convert_from_bytes

from .models import CapturedImage
from .utils import get_file_extension

pillow_heif.register_heif_opener()

PASSTHROUGH_EXTS = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png"}
CONVERTED_IMAGE_EXTS = {".heic", ".heif", ".webp", ".bmp", ".tif", ".tiff"}
PDF_EXT = ".pdf"


def to_jpeg_bytes(img: Image.Image, quality: int = 90) -> bytes:
    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, "JPEG", quality=quality)
    return buffer.getvalue()


def load_captured_image(path: str, mime: Optional[str] = None) -> CapturedImage:
    """
    Read a file into a CapturedImage.

    JPEG and PNG are passed through untouched. HEIC and other image formats
    are re-encoded as JPEG; for a PDF only the first page is used. Nothing is
    written to disk.
    """
    ext = get_file_extension(path)
    with open(path, "rb") as f:
        data = f.read()

    # -------- Case 1: already an upload format --------
    if ext in PASSTHROUGH_EXTS:
        return CapturedImage(data, mime or PASSTHROUGH_EXTS[ext])

    # -------- Case 2: other image formats / HEIC --------
    if ext in CONVERTED_IMAGE_EXTS:
        img = Image.open(io.BytesIO(data))
        return CapturedImage(to_jpeg_bytes(img), "image/jpeg")

    # -------- Case 3: PDF --------
    if ext == PDF_EXT:
        pages = convert_from_bytes(data, dpi=300, first_page=1, last_page=1)
        if not pages:
            raise ValueError(f"No pages found in {path}")
        return CapturedImage(to_jpeg_bytes(pages[0]), "image/jpeg")

    raise ValueError(f"Unsupported file type: {ext}")
