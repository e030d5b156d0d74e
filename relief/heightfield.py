"""
HeightField - dense row-major grid of heights, one value per pixel.
"""

from dataclasses import dataclass

import numpy as np
from PIL import Image


@dataclass
class HeightField:
    values: np.ndarray        # (height, width) float32
    placeholder: bool = False  # True when filled with noise because there was nothing to measure

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=np.float32)
        if self.values.ndim != 2:
            raise ValueError(f"height field must be 2D, got shape {self.values.shape}")

    @classmethod
    def from_flat(cls, data, width: int, height: int, placeholder: bool = False) -> 'HeightField':
        data = np.asarray(data, dtype=np.float32)
        if data.size != width * height:
            raise ValueError(f"expected {width * height} samples for {width}x{height}, got {data.size}")
        return cls(data.reshape(height, width), placeholder)

    @property
    def width(self) -> int:
        return self.values.shape[1]

    @property
    def height(self) -> int:
        return self.values.shape[0]

    def flat(self) -> np.ndarray:
        return self.values.ravel().copy()

    def min(self) -> float:
        return float(self.values.min())

    def max(self) -> float:
        return float(self.values.max())

    def to_image(self) -> Image.Image:
        """8-bit grayscale with an opaque alpha channel, ``h * 255`` rounded half up."""
        gray = np.floor(np.clip(self.values, 0.0, 1.0) * 255 + 0.5).astype(np.uint8)
        alpha = np.full_like(gray, 255)
        # a (H, W, 2) uint8 array maps to mode 'LA'
        return Image.fromarray(np.dstack([gray, alpha]))
