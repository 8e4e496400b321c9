"""
Per-pixel radiance accumulation.

Samples are summed in float64 and divided once at the end, which keeps
the mean accurate for hundreds of thousands of samples per pixel.
Non-finite samples are counted as black instead of poisoning the pixel.
"""

from __future__ import annotations
from typing import Optional
import logging

import numpy as np

from .errors import NumericAnomaly, ResourceExhaustion
from .tonemapping import ToneMapper, apply_gamma
from .vec3 import Color

logger = logging.getLogger(__name__)


class ImageAccumulator:
    """Width x height grid of radiance sums and sample counts."""

    def __init__(self, width: int, height: int):
        """Allocate an empty accumulator.

        Raises:
            ValueError: If the size is not positive
            ResourceExhaustion: If the buffers cannot be allocated
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        try:
            self.sums = np.zeros((height, width, 3), dtype=np.float64)
            self.counts = np.zeros((height, width), dtype=np.int64)
        except (MemoryError, ValueError) as e:
            raise ResourceExhaustion(f"Cannot allocate a {width}x{height} image") from e
        self.anomalies = 0

    def add_sample(self, x: int, y: int, color: Color, strict: bool = False) -> bool:
        """Add one radiance sample to pixel (x, y).

        Args:
            x: Column, 0 = left
            y: Row, 0 = top
            color: Linear radiance
            strict: Raise NumericAnomaly instead of recovering

        Returns:
            True if the sample was finite
        """
        value = color.to_array()
        self.counts[y, x] += 1
        if not np.all(np.isfinite(value)):
            self.anomalies += 1
            if strict:
                raise NumericAnomaly(f"Non-finite radiance {value} at pixel ({x}, {y})", pixel=(x, y))
            logger.debug("Non-finite radiance %s at pixel (%d, %d) treated as black", value, x, y)
            return False
        self.sums[y, x] += value
        return True

    def add_tile(self, x0: int, y0: int, sums: np.ndarray, counts: np.ndarray, anomalies: int = 0) -> None:
        """Merge a worker's partial tile buffers at offset (x0, y0)."""
        h, w = counts.shape
        self.sums[y0:y0 + h, x0:x0 + w] += sums
        self.counts[y0:y0 + h, x0:x0 + w] += counts
        self.anomalies += anomalies

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        """Replace pixel (x, y) with a single exact value."""
        self.sums[y, x] = color.to_array()
        self.counts[y, x] = 1

    def mean(self) -> np.ndarray:
        """Return the per-pixel average radiance (H, W, 3); 0 where no samples."""
        counts = self.counts[..., np.newaxis]
        return np.divide(self.sums, counts, out=np.zeros_like(self.sums), where=counts > 0)

    def finalize(self, gamma: float = 2.2, tone_mapper: Optional[ToneMapper] = None) -> np.ndarray:
        """Average, then map to display values in [0, 1]."""
        return finalize_image(self.mean(), gamma, tone_mapper)

    def to_uint8(self, gamma: float = 2.2, tone_mapper: Optional[ToneMapper] = None) -> np.ndarray:
        """Finalize and quantize to 8 bits per channel."""
        return to_uint8(self.finalize(gamma, tone_mapper))


def finalize_image(image: np.ndarray, gamma: float = 2.2, tone_mapper: Optional[ToneMapper] = None) -> np.ndarray:
    """Optionally tone map a linear HDR image, then gamma correct and clamp to [0, 1]."""
    if tone_mapper is not None:
        image = tone_mapper.apply(image)
    return apply_gamma(image, gamma)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Quantize a [0, 1] float image to uint8."""
    return (np.clip(image, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
