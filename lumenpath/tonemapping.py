"""
Tone mapping operators for HDR to LDR conversion.

Implements:
- Linear clamping
- Reinhard (simple and extended with a white point)
- Gamma correction
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import numpy as np


class ToneMappingOperator(Enum):
    """Available tone mapping operators."""
    LINEAR = "linear"
    REINHARD = "reinhard"
    REINHARD_EXTENDED = "reinhard_extended"


class ToneMapper(ABC):
    """Abstract base class for tone mapping operators."""

    @abstractmethod
    def apply(self, hdr_image: np.ndarray) -> np.ndarray:
        """Apply tone mapping to HDR image.

        Args:
            hdr_image: HDR image (H, W, 3), linear float values

        Returns:
            Tone-mapped image (H, W, 3), still linear
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the operator."""
        pass


class LinearToneMapper(ToneMapper):
    """Simple linear clamping (no tone mapping).

    Just clamps values to [0, 1] range.
    """

    @property
    def name(self) -> str:
        return "Linear"

    def apply(self, hdr_image: np.ndarray) -> np.ndarray:
        """Clamp HDR values to [0, 1]."""
        return np.clip(hdr_image, 0.0, 1.0)


class ReinhardToneMapper(ToneMapper):
    """Per-channel Reinhard operator.

    The simple form is c / (1 + c). With a white point the extended form
    c * (1 + c / w²) / (1 + c) maps w to exactly 1.
    """

    def __init__(self, white_point: Optional[float] = None):
        if white_point is not None and white_point <= 0:
            raise ValueError(f"white_point must be positive, got {white_point}")
        self.white_point = white_point

    @property
    def name(self) -> str:
        return "Reinhard" if self.white_point is None else "Reinhard Extended"

    def apply(self, hdr_image: np.ndarray) -> np.ndarray:
        c = np.clip(hdr_image, 0.0, None)
        if self.white_point is None:
            return c / (1.0 + c)
        white_sq = self.white_point * self.white_point
        return np.clip(c * (1.0 + c / white_sq) / (1.0 + c), 0.0, 1.0)


def luminance(image: np.ndarray) -> np.ndarray:
    """Rec. 709 luminance of an (..., 3) array."""
    return 0.2126 * image[..., 0] + 0.7152 * image[..., 1] + 0.0722 * image[..., 2]


def apply_gamma(image: np.ndarray, gamma: float = 2.2) -> np.ndarray:
    """Apply gamma correction to an image.

    Args:
        image: Input image (H, W, 3), linear values
        gamma: Gamma value (2.2 for sRGB)

    Returns:
        Gamma-corrected image clamped to [0, 1]
    """
    return np.clip(np.power(np.clip(image, 0.0, None), 1.0 / gamma), 0.0, 1.0)


def create_tone_mapper(operator: ToneMappingOperator | str, **kwargs) -> ToneMapper:
    """Create a tone mapper by operator type or name.

    Args:
        operator: Type of tone mapping operator
        **kwargs: Additional arguments for the specific operator

    Returns:
        ToneMapper instance
    """
    try:
        operator = ToneMappingOperator(operator)
    except ValueError:
        raise ValueError(f"Unknown tone mapping operator: {operator}") from None

    if operator == ToneMappingOperator.LINEAR:
        return LinearToneMapper()
    elif operator == ToneMappingOperator.REINHARD:
        return ReinhardToneMapper(**kwargs)
    else:
        kwargs.setdefault("white_point", 4.0)
        return ReinhardToneMapper(**kwargs)
