"""
Vector3 class for 3D math operations.

This is the fundamental building block of the ray tracer, used for:
- Points in 3D space
- Direction vectors
- RGB color values

Random sampling helpers take an explicit ``numpy.random.Generator`` so
that every sample can be reproduced from its seed.
"""

from __future__ import annotations
import math
from typing import Union
import numpy as np


# Vectors shorter than this cannot be normalized
NORMALIZE_EPSILON = 1e-12


class DegenerateVectorError(ValueError):
    """Raised when normalizing a zero-length or non-finite vector."""
    pass


class TotalInternalReflection(ValueError):
    """Raised by refract() when Snell's law has no real solution."""
    pass


class Vec3:
    """A 3D vector class supporting common vector operations.

    Uses numpy internally for storage while providing
    a clean, Pythonic API.
    """

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Create Vec3 from numpy array."""
        v = cls.__new__(cls)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Aliases for color operations
    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    def __hash__(self) -> int:
        return hash(tuple(self._data))

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data + other._data)
        return Vec3.from_array(self._data + other)

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data - other._data)
        return Vec3.from_array(self._data - other)

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data * other._data)
        return Vec3.from_array(self._data * other)

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data / other._data)
        return Vec3.from_array(self._data / other)

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self):
        return (float(c) for c in self._data)

    def length(self) -> float:
        """Return the magnitude (length) of the vector."""
        return math.sqrt(self.length_squared())

    def length_squared(self) -> float:
        """Return the squared magnitude (avoids sqrt for comparisons)."""
        return float(np.dot(self._data, self._data))

    def normalize(self) -> Vec3:
        """Return a unit vector in the same direction.

        Raises:
            DegenerateVectorError: If the vector is (nearly) zero or not finite
        """
        length = self.length()
        if not math.isfinite(length) or length < NORMALIZE_EPSILON:
            raise DegenerateVectorError(f"Cannot normalize {self!r}")
        return Vec3.from_array(self._data / length)

    def dot(self, other: Vec3) -> float:
        """Compute dot product with another vector."""
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        """Compute cross product with another vector."""
        return Vec3.from_array(np.cross(self._data, other._data))

    def reflect(self, normal: Vec3) -> Vec3:
        """Reflect this vector around the given normal."""
        return self - normal * 2 * self.dot(normal)

    def refract(self, normal: Vec3, eta_ratio: float) -> Vec3:
        """Refract this unit vector through a surface with the given normal.

        Args:
            normal: Unit surface normal on the same side as the incoming ray
            eta_ratio: Ratio of refractive indices (n1/n2)

        Returns:
            Refracted unit direction

        Raises:
            TotalInternalReflection: If sin²θ_t exceeds 1
        """
        cos_theta = min(-self.dot(normal), 1.0)
        sin2_theta_t = eta_ratio * eta_ratio * (1.0 - cos_theta * cos_theta)
        if sin2_theta_t > 1.0:
            raise TotalInternalReflection(
                f"No refraction for eta_ratio={eta_ratio}, cos_theta={cos_theta}"
            )

        r_out_perp = (self + normal * cos_theta) * eta_ratio
        r_out_parallel = normal * (-math.sqrt(abs(1.0 - r_out_perp.length_squared())))
        return r_out_perp + r_out_parallel

    def can_refract(self, normal: Vec3, eta_ratio: float) -> bool:
        """Check whether refract() has a solution for this incidence."""
        cos_theta = min(-self.dot(normal), 1.0)
        return eta_ratio * eta_ratio * (1.0 - cos_theta * cos_theta) <= 1.0

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        """Check if vector is close to zero in all dimensions."""
        return bool(np.all(np.abs(self._data) < epsilon))

    def is_finite(self) -> bool:
        """Check that no component is NaN or infinite."""
        return bool(np.all(np.isfinite(self._data)))

    def max_component(self) -> float:
        return float(np.max(self._data))

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()

    def clamp(self, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Clamp all components to the given range."""
        return Vec3.from_array(np.clip(self._data, min_val, max_val))


def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
    """Generate a random point inside the unit sphere."""
    while True:
        p = Vec3.from_array(rng.uniform(-1.0, 1.0, 3))
        if p.length_squared() < 1:
            return p


def random_unit_vector(rng: np.random.Generator) -> Vec3:
    """Generate a random unit vector (uniform on sphere surface)."""
    while True:
        p = random_in_unit_sphere(rng)
        length_sq = p.length_squared()
        # Tiny vectors lose precision when normalized
        if length_sq > 1e-160:
            return p / math.sqrt(length_sq)


def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
    """Generate a random point inside the unit disk (z=0)."""
    while True:
        x, y = rng.uniform(-1.0, 1.0, 2)
        p = Vec3(x, y, 0.0)
        if p.length_squared() < 1:
            return p


def random_cosine_direction(normal: Vec3, rng: np.random.Generator) -> Vec3:
    """Cosine-weighted unit direction in the hemisphere around ``normal``.

    Adding a uniform unit vector to the unit normal yields a point on a
    unit sphere tangent to the surface, which is distributed with density
    proportional to cos(theta). Draws that cancel the normal are resampled.
    """
    while True:
        direction = normal + random_unit_vector(rng)
        if not direction.near_zero():
            return direction.normalize()


# Convenience type aliases
Point3 = Vec3
Color = Vec3
