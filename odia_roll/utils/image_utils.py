"""
Image processing utility functions.

The image operations the pipeline needs: load/save, integer-pixel crops,
greyscale, contrast normalization, unsharp-mask sharpening and binarization.
All functions take and return numpy arrays (OpenCV BGR or single channel).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from ..exceptions import CroppingError
from ..models.geometry import Rect


def load_image(path: Path, flags: int = cv2.IMREAD_COLOR) -> Optional[np.ndarray]:
    """
    Load image from file with proper Unicode path handling.

    Args:
        path: Path to image file
        flags: OpenCV imread flags

    Returns:
        Loaded image as numpy array, or None if the file is missing or unreadable
    """
    path = Path(path)
    if not path.exists():
        return None

    # cv2.imdecode handles non-ASCII paths that cv2.imread cannot open
    data = np.fromfile(str(path), dtype=np.uint8)
    if data.size == 0:
        return None
    return cv2.imdecode(data, flags)


def save_image(image: np.ndarray, path: Path, compression: int = 3) -> bool:
    """
    Save image to file with proper Unicode path handling.

    Returns:
        True if successful, False otherwise
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    ext = path.suffix.lower() or ".png"
    params = [cv2.IMWRITE_PNG_COMPRESSION, compression] if ext == ".png" else []

    success, data = cv2.imencode(ext, image, params)
    if not success:
        return False
    data.tofile(str(path))
    return True


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of an image."""
    h, w = image.shape[:2]
    return int(w), int(h)


def crop_rect(image: np.ndarray, rect: Rect, block_id: Optional[str] = None) -> np.ndarray:
    """
    Crop image to a pixel rectangle (rounded to integers).

    Raises:
        CroppingError: if the rectangle is empty or lies outside the image
    """
    if image is None or image.size == 0:
        raise CroppingError("Cannot crop an empty image", block_id=block_id, boundary=rect)

    w, h = image_size(image)
    x, y, cw, ch = rect.rounded()

    if cw <= 0 or ch <= 0:
        raise CroppingError("Crop has zero size", block_id=block_id, boundary=rect)
    if x < 0 or y < 0 or x >= w or y >= h:
        raise CroppingError(
            f"Crop origin ({x}, {y}) outside image {w}x{h}",
            block_id=block_id,
            boundary=rect,
        )

    x2 = min(w, x + cw)
    y2 = min(h, y + ch)
    return image[y:y2, x:x2].copy()


def to_greyscale(image: np.ndarray) -> np.ndarray:
    """Convert BGR/BGRA to single channel; greyscale input is copied."""
    if image.ndim == 2:
        return image.copy()
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def normalize_contrast(gray: np.ndarray) -> np.ndarray:
    """Stretch intensities to the full 0-255 range."""
    return cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)


def sharpen(gray: np.ndarray, sigma: float = 1.0, amount: float = 1.0) -> np.ndarray:
    """
    Unsharp mask with a Gaussian of the given sigma.

    result = image + amount * (image - blur(image))
    """
    if sigma <= 0:
        return gray.copy()
    blurred = cv2.GaussianBlur(gray, (0, 0), sigmaX=sigma, sigmaY=sigma)
    return cv2.addWeighted(gray, 1.0 + amount, blurred, -amount, 0)


def binarize(gray: np.ndarray, threshold: int = 128) -> np.ndarray:
    """Fixed-threshold binarization: >= threshold becomes white."""
    _, binary = cv2.threshold(gray, threshold - 1, 255, cv2.THRESH_BINARY)
    return binary


def prepare_block_image(crop: np.ndarray, sharpen_sigma: float = 1.0) -> np.ndarray:
    """Greyscale, normalize and sharpen a block crop for dense-block recognition."""
    gray = to_greyscale(crop)
    gray = normalize_contrast(gray)
    return sharpen(gray, sigma=sharpen_sigma)


def prepare_page_variants(
    image: np.ndarray,
    sharpen_sigma: float = 0.8,
    threshold: int = 128,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the two page images used by the coarse page scan.

    Returns:
        (processed, alternate): the binarized primary variant and the
        less-preprocessed original used for the single retry
    """
    gray = to_greyscale(image)
    gray = normalize_contrast(gray)
    gray = sharpen(gray, sigma=sharpen_sigma)
    processed = binarize(gray, threshold=threshold)
    return processed, image
