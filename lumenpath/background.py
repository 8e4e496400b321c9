"""
Background radiance returned for rays that leave the scene.

Implements:
- Solid color backgrounds
- Vertical sky gradient (white horizon to blue zenith)
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from .vec3 import Vec3, Color


class Background(ABC):
    """Abstract base class for background radiance functions."""

    @abstractmethod
    def radiance(self, direction: Vec3) -> Color:
        """Get the background radiance for a given direction.

        Args:
            direction: The ray direction (need not be normalized)

        Returns:
            Radiance arriving from that direction
        """
        pass

    def __call__(self, direction: Vec3) -> Color:
        return self.radiance(direction)


class SolidBackground(Background):
    """A constant background color."""

    def __init__(self, color: Color = Color(0, 0, 0)):
        self.color = color

    def radiance(self, direction: Vec3) -> Color:
        return self.color

    def __repr__(self) -> str:
        return f"SolidBackground({self.color})"


class SkyGradient(Background):
    """A vertical gradient environment (simple sky)."""

    def __init__(
        self,
        horizon_color: Color = Color(1.0, 1.0, 1.0),
        zenith_color: Color = Color(0.5, 0.7, 1.0)
    ):
        """Create a gradient background.

        Args:
            horizon_color: Color looking straight down
            zenith_color: Color looking straight up
        """
        self.horizon_color = horizon_color
        self.zenith_color = zenith_color

    def radiance(self, direction: Vec3) -> Color:
        # Y-up: map unit y from [-1, 1] to [0, 1]
        t = 0.5 * (direction.normalize().y + 1.0)
        return self.horizon_color * (1.0 - t) + self.zenith_color * t

    def __repr__(self) -> str:
        return f"SkyGradient({self.horizon_color} -> {self.zenith_color})"
