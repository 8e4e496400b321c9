"""
Geometric shapes for the ray tracer.

Each shape must implement the Hittable protocol with a `hit` method.
The sphere is the only analytic primitive; `HittableList` is the
exhaustive linear scan the BVH is checked against.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

from .errors import SceneConstructionError
from .vec3 import Vec3, Point3
from .ray import Ray

if TYPE_CHECKING:
    from .materials import Material


# Lower bound of the ray interval for secondary rays (avoids surface acne)
T_EPSILON = 1e-3

# Relative tolerance under which a negative discriminant counts as tangent
TANGENT_TOLERANCE = 1e-12


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: The unit surface normal at the intersection (always points against ray)
        t: The ray parameter at intersection
        front_face: True if ray hit from outside the object
        material: The material at the hit point
        shape: The primitive that was hit
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None
    shape: Optional['Hittable'] = None

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        """Set the normal to always point against the ray direction.

        Args:
            ray: The incoming ray
            outward_normal: The unit geometric normal pointing outward from surface
        """
        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


class Hittable(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (avoid self-intersection)
            t_max: Maximum t value to consider

        Returns:
            HitRecord if intersection found, None otherwise
        """
        pass

    @abstractmethod
    def bounding_box(self) -> Optional['AABB']:
        """Get the axis-aligned bounding box for this object.

        Returns:
            AABB if the object is bounded, None otherwise
        """
        pass


class Sphere(Hittable):
    """A sphere defined by center and radius."""

    __slots__ = ('center', 'radius', 'material', '_bbox')

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere (must be positive)
            material: Material for shading

        Raises:
            SceneConstructionError: If the radius or center is invalid
        """
        if not center.is_finite():
            raise SceneConstructionError(f"Sphere center must be finite, got {center}")
        try:
            radius = float(radius)
        except (TypeError, ValueError) as e:
            raise SceneConstructionError(f"Sphere radius must be a number, got {radius!r}") from e
        if not (math.isfinite(radius) and radius > 0):
            raise SceneConstructionError(f"Sphere radius must be positive, got {radius}")

        self.center = center
        self.radius = radius
        self.material = material

        r_vec = Vec3(self.radius, self.radius, self.radius)
        self._bbox = AABB(self.center - r_vec, self.center + r_vec)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0
        which is the quadratic at² + bt + c = 0, solved with half b.
        Only roots strictly inside (t_min, t_max) are accepted.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0.0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        # Overflow for far-away or huge spheres gives inf - inf
        if not math.isfinite(discriminant):
            return None
        if discriminant < 0:
            # Grazing rays within rounding of the tangent still hit once
            if discriminant < -TANGENT_TOLERANCE * half_b * half_b:
                return None
            discriminant = 0.0

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if root <= t_min or root >= t_max:
            root = (-half_b + sqrtd) / a
            if root <= t_min or root >= t_max:
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius

        hit_record = HitRecord(
            point=point,
            normal=outward_normal,
            t=root,
            front_face=True,
            material=self.material,
            shape=self
        )
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def bounding_box(self) -> AABB:
        """Return the AABB containing this sphere."""
        return self._bbox

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class AABB:
    """Axis-Aligned Bounding Box for acceleration structures."""

    __slots__ = ('minimum', 'maximum')

    def __init__(self, minimum: Point3, maximum: Point3):
        """Create an AABB from corner points.

        Args:
            minimum: Corner with smallest x, y, z values
            maximum: Corner with largest x, y, z values
        """
        self.minimum = minimum
        self.maximum = maximum

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Test if ray intersects this AABB using slab method.

        This uses Andrew Kensler's optimized algorithm. Touching a face
        counts as a hit so that tangent sphere hits are never pruned.
        """
        for i in range(3):
            d = ray.direction[i]
            o = ray.origin[i]
            if d == 0.0:
                if o < self.minimum[i] or o > self.maximum[i]:
                    return False
                continue

            inv_d = 1.0 / d
            t0 = (self.minimum[i] - o) * inv_d
            t1 = (self.maximum[i] - o) * inv_d

            if inv_d < 0:
                t0, t1 = t1, t0

            t_min = max(t0, t_min)
            t_max = min(t1, t_max)

            if t_max < t_min:
                return False

        return True

    def centroid(self, axis: int) -> float:
        """Return the box center along an axis."""
        return (self.minimum[axis] + self.maximum[axis]) / 2

    def extent(self) -> Vec3:
        return self.maximum - self.minimum

    def longest_axis(self) -> int:
        """Return the index of the axis with the largest extent."""
        e = self.extent()
        if e.x >= e.y and e.x >= e.z:
            return 0
        return 1 if e.y >= e.z else 2

    @staticmethod
    def surrounding_box(box0: 'AABB', box1: 'AABB') -> 'AABB':
        """Return the AABB that contains both input boxes."""
        small = Point3(
            min(box0.minimum.x, box1.minimum.x),
            min(box0.minimum.y, box1.minimum.y),
            min(box0.minimum.z, box1.minimum.z)
        )
        big = Point3(
            max(box0.maximum.x, box1.maximum.x),
            max(box0.maximum.y, box1.maximum.y),
            max(box0.maximum.z, box1.maximum.z)
        )
        return AABB(small, big)

    def __repr__(self) -> str:
        return f"AABB(min={self.minimum}, max={self.maximum})"


class HittableList(Hittable):
    """A collection of hittable objects, searched exhaustively."""

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = objects if objects is not None else []

    def add(self, obj: Hittable) -> None:
        """Add an object to the list."""
        self.objects.append(obj)

    def clear(self) -> None:
        """Remove all objects."""
        self.objects.clear()

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Find the closest intersection among all objects."""
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.objects:
            hit_record = obj.hit(ray, t_min, closest_t)
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def bounding_box(self) -> Optional[AABB]:
        """Return the AABB containing all objects."""
        if not self.objects:
            return None

        output_box: Optional[AABB] = None

        for obj in self.objects:
            box = obj.bounding_box()
            if box is None:
                return None
            output_box = box if output_box is None else AABB.surrounding_box(output_box, box)

        return output_box

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)
