"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point, a direction vector and the
parametric interval in which intersections are accepted.
Ray(t) = origin + t * direction
"""

from __future__ import annotations
import math

from .vec3 import Vec3, Point3


class Ray:
    """A read-only ray with origin, direction and valid interval.

    The parametric form is: P(t) = origin + t * direction
    where t_min < t < t_max represents the accepted segment.
    """

    __slots__ = ('origin', 'direction', 't_min', 't_max')

    def __init__(
        self,
        origin: Point3,
        direction: Vec3,
        t_min: float = 0.0,
        t_max: float = math.inf
    ):
        """Create a ray with given origin and direction.

        Args:
            origin: The starting point of the ray
            direction: The direction vector (normalized before shading math)
            t_min: Lower bound of the accepted interval
            t_max: Upper bound of the accepted interval
        """
        object.__setattr__(self, 'origin', origin)
        object.__setattr__(self, 'direction', direction)
        object.__setattr__(self, 't_min', t_min)
        object.__setattr__(self, 't_max', t_max)

    def __setattr__(self, name, value):
        raise AttributeError(f"Ray is read-only (tried to set {name!r})")

    def at(self, t: float) -> Point3:
        """Get the point along the ray at parameter t.

        Args:
            t: The parameter value (distance if direction is normalized)

        Returns:
            The point at origin + t * direction
        """
        return self.origin + self.direction * t

    def unit_direction(self) -> Vec3:
        return self.direction.normalize()

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin}, direction={self.direction})"
