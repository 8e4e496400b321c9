"""
Scene container: the BVH over all shapes plus the background.

A Scene is built once, before rendering, and never changes afterwards.
"""

from __future__ import annotations
from typing import Iterable, Optional
import logging
import time

from .background import Background, SkyGradient
from .bvh import BVH
from .errors import SceneConstructionError
from .materials import Material
from .ray import Ray
from .shapes import Hittable, HitRecord

logger = logging.getLogger(__name__)


class Scene:
    """Immutable world description used by the integrator."""

    def __init__(self, bvh: BVH, background: Background):
        self._bvh = bvh
        self._background = background

    @classmethod
    def from_objects(
        cls,
        objects: Iterable[Hittable],
        background: Optional[Background] = None,
        max_leaf_size: int = 2
    ) -> Scene:
        """Validate the objects and build the acceleration structure.

        Args:
            objects: Shapes, each carrying its material
            background: Radiance for rays that escape (sky gradient by default)
            max_leaf_size: Maximum shapes per BVH leaf

        Raises:
            SceneConstructionError: If an object is not a valid shape
            ResourceExhaustion: If the BVH cannot be allocated
        """
        objects = list(objects)
        for obj in objects:
            if not isinstance(obj, Hittable):
                raise SceneConstructionError(f"Not a shape: {obj!r}")
            material = getattr(obj, 'material', None)
            if material is not None and not isinstance(material, Material):
                raise SceneConstructionError(f"Invalid material {material!r} on {obj!r}")

        start = time.perf_counter()
        bvh = BVH(objects, max_leaf_size=max_leaf_size)
        logger.info(
            "Scene built: %d objects, %d BVH nodes in %.3fs",
            len(bvh), len(bvh.nodes), time.perf_counter() - start
        )
        return cls(bvh, background if background is not None else SkyGradient())

    @property
    def bvh(self) -> BVH:
        return self._bvh

    @property
    def background(self) -> Background:
        return self._background

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        return self._bvh.hit(ray, t_min, t_max)

    def __len__(self) -> int:
        return len(self._bvh)
