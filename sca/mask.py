"""
Image loading and sampling utilities for attractor placement.

Turns a picture into a point list for the ``external`` attractor mode.
Three placement methods:
- dark: pixels whose brightness is below a threshold
- alpha: pixels that are not fully transparent
- edge: Sobel edge magnitude on the grayscale image
"""

import logging
from typing import List, Literal, Optional, Tuple

import numpy as np
from PIL import Image
from scipy import ndimage

logger = logging.getLogger(__name__)

AttractorPlacement = Literal['dark', 'alpha', 'edge']


def load_image(image_path: str, size: Optional[Tuple[int, int]] = None) -> Image.Image:
    """Load an image, optionally resized to the growth domain ``(width, height)``."""
    img = Image.open(image_path).convert('RGBA')
    if size is not None and img.size != tuple(size):
        img = img.resize(tuple(size), Image.Resampling.BILINEAR)
    return img


def to_grayscale(img: Image.Image) -> np.ndarray:
    return np.asarray(img.convert('L'), dtype=np.float32) / 255.0


def alpha_mask(img: Image.Image) -> np.ndarray:
    """True where foreground exists."""
    return np.asarray(img)[:, :, 3] > 0


def dark_mask(img: Image.Image, threshold: float = 0.5) -> np.ndarray:
    return (to_grayscale(img) < threshold) & alpha_mask(img)


def edge_mask(img: Image.Image, threshold: float = 0.1) -> np.ndarray:
    """
    Detect edges based on brightness gradients using the Sobel operator.

    Args:
        img: Source image
        threshold: Minimum gradient magnitude to consider as edge (0-1 scale)
    """
    gray = to_grayscale(img)

    sobel_x = ndimage.sobel(gray, axis=1)
    sobel_y = ndimage.sobel(gray, axis=0)

    magnitude = np.hypot(sobel_x, sobel_y)
    peak = magnitude.max()
    if peak > 0:
        magnitude = magnitude / peak

    return magnitude > threshold


def sample_positions(mask: np.ndarray, count: int, rng: np.random.Generator) -> List[Tuple[float, float]]:
    """Sample up to ``count`` distinct ``(x, y)`` pixel positions where the mask is True."""
    ys, xs = np.nonzero(mask)
    if len(xs) == 0:
        return []

    if len(xs) < count:
        logger.warning("Only %d candidate pixels available for %d attractors", len(xs), count)
        count = len(xs)

    picks = rng.choice(len(xs), size=count, replace=False)
    return [(float(xs[i]), float(ys[i])) for i in picks]


def attractors_from_image(
    image_path: str,
    count: int,
    rng: np.random.Generator,
    method: AttractorPlacement = 'dark',
    threshold: float = 0.5,
    size: Optional[Tuple[int, int]] = None
) -> List[Tuple[float, float]]:
    """
    Sample attractor positions from an image.

    Args:
        image_path: Path to the image
        count: Number of attractors to sample
        rng: Random source
        method: 'dark', 'alpha' or 'edge'
        threshold: Brightness threshold (dark) or edge magnitude threshold (edge)
        size: Resize the image to the growth domain first
    """
    img = load_image(image_path, size)

    if method == 'alpha':
        mask = alpha_mask(img)
    elif method == 'edge':
        mask = edge_mask(img, threshold)
    else:
        if method != 'dark':
            logger.error("Unknown placement method: %r, using dark as fallback", method)
        mask = dark_mask(img, threshold)

    positions = sample_positions(mask, count, rng)
    if not positions:
        logger.warning("No candidate pixels found in %s", image_path)
    else:
        logger.info("Sampled %d attractors from %s (%dx%d, method=%s)",
                    len(positions), image_path, img.width, img.height, method)
    return positions
