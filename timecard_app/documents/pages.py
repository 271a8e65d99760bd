"""
Page preparation for uploaded time cards.

Handles:
- Image normalization (EXIF orientation, RGB, downscaling)
- PDF to image conversion, one page per PDF page
- PNG encoding for the LLM vision APIs
"""

import base64
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".jpe", ".jfif",
    ".tiff", ".tif", ".bmp", ".gif", ".webp",
}
SUPPORTED_PDF_EXTENSIONS = {".pdf"}


@dataclass
class DocumentPage:
    """One page image ready to send to the LLM."""
    name: str
    data: bytes
    mime_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")


def prepare_image(image: Image.Image, max_size: int = 2048) -> bytes:
    """
    Normalize an image and encode it as PNG.

    Args:
        image: Loaded PIL image
        max_size: Longest side after downscaling

    Returns:
        PNG bytes
    """
    image = ImageOps.exif_transpose(image)

    if image.mode == "RGBA":
        # White background for transparent scans
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[3])
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")

    w, h = image.size
    if max(w, h) > max_size:
        scale = max_size / max(w, h)
        new_w, new_h = int(w * scale), int(h * scale)
        image = image.resize((new_w, new_h), Image.LANCZOS)
        logger.info(f"Resized image from {w}x{h} to {new_w}x{new_h}")

    buffer = BytesIO()
    image.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def _rasterize_pdf(content: bytes, dpi: int) -> list[Image.Image]:
    from pdf2image import convert_from_bytes

    return convert_from_bytes(content, dpi=dpi, fmt="png")


def load_pages(
    file_name: str,
    content: bytes,
    dpi: int = 200,
    max_size: int = 2048,
    extension: Optional[str] = None,
) -> list[DocumentPage]:
    """
    Split an uploaded file into page images.

    Args:
        file_name: Original file name, used for page names
        content: File bytes
        dpi: Rasterization resolution for PDFs
        max_size: Longest side of each page image
        extension: Override for the file extension

    Returns:
        List of DocumentPage, one per image or PDF page

    Raises:
        ValueError: If the file type is not supported
    """
    path = Path(file_name)
    extension = (extension or path.suffix).lower()
    if extension and not extension.startswith("."):
        extension = f".{extension}"

    if extension in SUPPORTED_PDF_EXTENSIONS:
        images = _rasterize_pdf(content, dpi)
        if not images:
            logger.warning(f"PDF '{file_name}' contains no pages")
        pages = [
            DocumentPage(name=f"{path.stem}_p{i + 1}", data=prepare_image(image, max_size))
            for i, image in enumerate(images)
        ]
        logger.info(f"Rasterized '{file_name}' into {len(pages)} pages at {dpi} dpi")
        return pages

    if extension in SUPPORTED_IMAGE_EXTENSIONS:
        image = Image.open(BytesIO(content))
        image.load()
        return [DocumentPage(name=path.stem, data=prepare_image(image, max_size))]

    raise ValueError(f"Unsupported file type: {extension or file_name}")
