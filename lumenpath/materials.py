"""
Materials system.

Implements:
- Lambertian diffuse (cosine-weighted scattering)
- Metal (specular reflection with fuzz)
- Dielectric (glass, water - with refraction and Schlick reflectance)
- Null material (absorbs everything)

Every `scatter` call draws its random numbers from the generator it is
given, so a path can be replayed from its seed.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import math

import numpy as np

from .errors import SceneConstructionError
from .vec3 import Vec3, Color, random_cosine_direction, random_unit_vector
from .ray import Ray
from .shapes import HitRecord


@dataclass
class ScatterResult:
    """Result of a material scatter operation."""
    scattered_ray: Ray
    attenuation: Color
    is_specular: bool = False


def _check_albedo(albedo: Color, owner: str) -> Color:
    if not isinstance(albedo, Vec3):
        raise SceneConstructionError(f"{owner} albedo must be a Color, got {albedo!r}")
    if not albedo.is_finite() or any(c < 0.0 or c > 1.0 for c in albedo):
        raise SceneConstructionError(f"{owner} albedo components must be in [0, 1], got {albedo}")
    return albedo


class Material(ABC):
    """Abstract base class for materials."""

    @abstractmethod
    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        """Compute the scattered ray and attenuation.

        Args:
            ray_in: The incoming ray
            hit: The intersection being shaded (normal faces the ray)
            rng: Random generator owned by the calling worker

        Returns:
            ScatterResult if ray scatters, None if absorbed
        """
        pass


class Lambertian(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    def __init__(self, albedo: Color):
        """Create a Lambertian material.

        Args:
            albedo: The base color (RGB, each component 0-1)
        """
        self.albedo = _check_albedo(albedo, "Lambertian")

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        scatter_direction = random_cosine_direction(hit.normal, rng)
        scattered = Ray(hit.point, scatter_direction)

        return ScatterResult(
            scattered_ray=scattered,
            attenuation=self.albedo,
            is_specular=False
        )

    def __repr__(self) -> str:
        return f"Lambertian(albedo={self.albedo})"


class Metal(Material):
    """Metallic material with specular reflection."""

    def __init__(self, albedo: Color, fuzz: float = 0.0):
        """Create a metal material.

        Args:
            albedo: The reflection color
            fuzz: Radius of the reflection jitter (0 = mirror, 1 = very rough)
        """
        self.albedo = _check_albedo(albedo, "Metal")
        if not (math.isfinite(fuzz) and 0.0 <= fuzz <= 1.0):
            raise SceneConstructionError(f"Metal fuzz must be in [0, 1], got {fuzz}")
        self.fuzz = float(fuzz)

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        reflected = ray_in.unit_direction().reflect(hit.normal)

        if self.fuzz > 0:
            reflected = reflected + random_unit_vector(rng) * self.fuzz

        # Jitter pushed the ray below the surface: absorbed
        if reflected.dot(hit.normal) <= 0:
            return None

        return ScatterResult(
            scattered_ray=Ray(hit.point, reflected.normalize()),
            attenuation=self.albedo,
            is_specular=True
        )

    def __repr__(self) -> str:
        return f"Metal(albedo={self.albedo}, fuzz={self.fuzz})"


class Dielectric(Material):
    """Dielectric (glass-like) material with refraction."""

    def __init__(self, ior: float = 1.5):
        """Create a dielectric material.

        Args:
            ior: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
        """
        if not (math.isfinite(ior) and ior > 0):
            raise SceneConstructionError(f"Dielectric index of refraction must be positive, got {ior}")
        self.ior = float(ior)

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        # Determine refraction ratio based on whether we're entering or exiting
        refraction_ratio = 1.0 / self.ior if hit.front_face else self.ior

        unit_direction = ray_in.unit_direction()
        cos_theta = min(-unit_direction.dot(hit.normal), 1.0)
        cannot_refract = not unit_direction.can_refract(hit.normal, refraction_ratio)

        if cannot_refract or rng.random() < self.reflectance(cos_theta, refraction_ratio):
            direction = unit_direction.reflect(hit.normal)
        else:
            direction = unit_direction.refract(hit.normal, refraction_ratio)

        return ScatterResult(
            scattered_ray=Ray(hit.point, direction.normalize()),
            attenuation=Color(1.0, 1.0, 1.0),
            is_specular=True
        )

    @staticmethod
    def reflectance(cosine: float, ref_idx: float) -> float:
        """Schlick's approximation for reflectance."""
        r0 = (1 - ref_idx) / (1 + ref_idx)
        r0 = r0 * r0
        return r0 + (1 - r0) * pow(1 - cosine, 5)

    def __repr__(self) -> str:
        return f"Dielectric(ior={self.ior})"


class NullMaterial(Material):
    """Material that absorbs every ray; stands in for missing materials."""

    def scatter(self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        return None

    def __repr__(self) -> str:
        return "NullMaterial()"
