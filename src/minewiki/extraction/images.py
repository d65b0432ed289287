# ABOUTME: Image fetch, resize and save helpers for item icons and block renders
# ABOUTME: Also derives a block texture's colour palette from the saved PNG

from io import BytesIO
from pathlib import Path

import httpx
from PIL import Image

from minewiki.core.models import BlockColor
from minewiki.extraction.base import ImageDownloadError
from minewiki.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)

# Pixels with less alpha than this are treated as background
ALPHA_THRESHOLD = 125


@log_api_call("image_download")
async def download_image(client: httpx.AsyncClient, url: str) -> bytes:
    """Fetch raw image bytes.

    Raises:
        ImageDownloadError: On transport errors or a non-200 response
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise ImageDownloadError(f"Failed to fetch image {url}: {e}") from e

    if response.status_code != 200:
        raise ImageDownloadError(f"Failed to fetch image. Status code: {response.status_code}")

    return response.content


def save_png(data: bytes, output_path: Path, size: int) -> Path:
    """Scale an image to fit inside a ``size`` x ``size`` box and save it as PNG.

    Images are enlarged as well as shrunk; enlarging uses nearest-neighbour so
    pixel-art icons stay sharp.
    """
    with Image.open(BytesIO(data)) as source:
        image = source.convert("RGBA")

    scale = min(size / image.width, size / image.height)
    new_size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
    resample = Image.Resampling.NEAREST if scale >= 1 else Image.Resampling.LANCZOS
    resized = image.resize(new_size, resample=resample)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    resized.save(output_path, format="PNG")
    logger.debug("Image saved", path=str(output_path), size=new_size)
    return output_path


def save_gif(data: bytes, output_path: Path) -> Path:
    """Save an animated image untouched."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.debug("GIF image saved", path=str(output_path))
    return output_path


def create_blank_png(output_path: Path, size: int) -> Path:
    """Write a fully transparent square PNG (used for air-like blocks)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", (size, size), (0, 0, 0, 0)).save(output_path, format="PNG")
    return output_path


def texture_palette(image_path: Path, count: int = 5, min_amount: float = 0.01) -> list[BlockColor]:
    """Quantize the opaque pixels of an image into ``count`` colour bins.

    Returns the bins ordered by the fraction of opaque pixels they cover,
    rounded to three decimals, dropping bins at or below ``min_amount``. A fully
    transparent image has no bins.
    """
    with Image.open(image_path) as source:
        rgba = source.convert("RGBA")

    raw = rgba.tobytes()
    opaque = bytearray()
    for offset in range(0, len(raw), 4):
        if raw[offset + 3] >= ALPHA_THRESHOLD:
            opaque += raw[offset : offset + 3]

    total = len(opaque) // 3
    if total == 0:
        return []

    pixels = Image.frombytes("RGB", (total, 1), bytes(opaque))
    quantized = pixels.quantize(colors=count, method=Image.Quantize.MEDIANCUT)
    palette = quantized.getpalette() or []

    bins = []
    for amount_count, index in quantized.getcolors(maxcolors=256) or []:
        amount = round(amount_count / total, 3)
        if amount <= min_amount:
            continue
        r, g, b = palette[index * 3 : index * 3 + 3]
        bins.append(BlockColor(color=(r, g, b), amount=amount))

    bins.sort(key=lambda color: color.amount, reverse=True)
    return bins
