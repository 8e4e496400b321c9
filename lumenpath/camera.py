"""
Camera module for generating primary rays.

Supports:
- Perspective projection
- Depth of field (defocus blur)
- Configurable field of view
- Arbitrary positioning via look-at
"""

from __future__ import annotations
from typing import Optional
import math

import numpy as np

from .errors import SceneConstructionError
from .vec3 import Vec3, Point3, DegenerateVectorError, random_in_unit_disk
from .ray import Ray


class Camera:
    """A camera with perspective projection and depth of field.

    The camera holds no random state; lens samples are drawn from the
    generator passed to `get_ray`.
    """

    def __init__(
        self,
        look_from: Point3,
        look_at: Point3,
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = 90.0,
        aspect_ratio: float = 16.0 / 9.0,
        aperture: float = 0.0,
        focus_dist: float = 1.0
    ):
        """Create a camera.

        Args:
            look_from: Camera position in world space
            look_at: Point the camera is looking at
            vup: World up vector (usually (0, 1, 0))
            vfov: Vertical field of view in degrees
            aspect_ratio: Width / Height ratio
            aperture: Lens diameter for depth of field (0 = pinhole); the
                aperture radius used for lens sampling is `lens_radius = aperture / 2`
            focus_dist: Distance to the focus plane

        Raises:
            SceneConstructionError: If the parameters do not define a camera
        """
        if not 0.0 < vfov < 180.0:
            raise SceneConstructionError(f"Vertical field of view must be in (0, 180), got {vfov}")
        if not aspect_ratio > 0.0:
            raise SceneConstructionError(f"Aspect ratio must be positive, got {aspect_ratio}")
        if not aperture >= 0.0:
            raise SceneConstructionError(f"Aperture must be non-negative, got {aperture}")
        if not focus_dist > 0.0:
            raise SceneConstructionError(f"Focus distance must be positive, got {focus_dist}")

        theta = math.radians(vfov)
        h = math.tan(theta / 2)
        viewport_height = 2.0 * h
        viewport_width = aspect_ratio * viewport_height

        # Compute orthonormal camera basis
        try:
            self.w = (look_from - look_at).normalize()  # Points backward from camera
            self.u = vup.cross(self.w).normalize()       # Points right
        except DegenerateVectorError as e:
            raise SceneConstructionError(
                f"Degenerate camera orientation: look_from={look_from}, look_at={look_at}, vup={vup}"
            ) from e
        self.v = self.w.cross(self.u)                    # Points up

        self.origin = look_from
        self.vfov = vfov
        self.aspect_ratio = aspect_ratio
        self.focus_dist = focus_dist
        self.horizontal = self.u * viewport_width * focus_dist
        self.vertical = self.v * viewport_height * focus_dist
        self.lower_left_corner = (
            self.origin
            - self.horizontal / 2
            - self.vertical / 2
            - self.w * focus_dist
        )

        self.lens_radius = aperture / 2

    @property
    def forward(self) -> Vec3:
        return -self.w

    def get_ray(self, s: float, t: float, rng: Optional[np.random.Generator] = None) -> Ray:
        """Generate a ray for the given UV coordinates on the image plane.

        Args:
            s: Horizontal coordinate [0, 1] (0 = left, 1 = right)
            t: Vertical coordinate [0, 1] (0 = bottom, 1 = top)
            rng: Generator for lens samples; required when the aperture is open

        Returns:
            A ray from the camera through the specified pixel
        """
        # Depth of field: random point on lens
        if self.lens_radius > 0:
            if rng is None:
                raise ValueError("A random generator is required for a camera with an open aperture")
            rd = random_in_unit_disk(rng) * self.lens_radius
            offset = self.u * rd.x + self.v * rd.y
        else:
            offset = Vec3(0, 0, 0)

        direction = (
            self.lower_left_corner
            + self.horizontal * s
            + self.vertical * t
            - self.origin
            - offset
        )

        return Ray(self.origin + offset, direction.normalize())

    def __repr__(self) -> str:
        return f"Camera(origin={self.origin}, looking_at={self.lower_left_corner + self.horizontal/2 + self.vertical/2})"
