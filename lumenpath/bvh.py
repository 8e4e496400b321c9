"""
Bounding Volume Hierarchy (BVH) for accelerating ray-object intersection.

BVH is a tree structure where each node contains an AABB and either:
- Two child nodes (interior node)
- A range of primitives (leaf node)

Nodes are kept in a flat list and refer to their children by index.
The tree is built once and is read-only afterwards, so any number of
render threads may traverse it concurrently.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, List
import logging

from .errors import ResourceExhaustion, SceneConstructionError
from .ray import Ray
from .shapes import Hittable, HitRecord, AABB, HittableList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BVHNode:
    """A node in the Bounding Volume Hierarchy arena.

    Interior nodes have `left`/`right` child indices; leaf nodes have
    `count > 0` primitives starting at `start` in `BVH.objects`.
    """
    bbox: AABB
    left: int = -1
    right: int = -1
    start: int = 0
    count: int = 0

    @property
    def is_leaf(self) -> bool:
        return self.count > 0


class BVH(Hittable):
    """Bounding Volume Hierarchy acceleration structure.

    Provides O(log n) expected ray intersection instead of O(n) for n objects,
    and always returns the same hit as a linear scan over the objects.
    """

    def __init__(self, objects: List[Hittable], max_leaf_size: int = 2):
        """Build a BVH from a list of objects.

        Args:
            objects: List of hittable objects to accelerate
            max_leaf_size: Maximum objects per leaf node

        Raises:
            SceneConstructionError: If an object has no bounding box
            ResourceExhaustion: If the tree does not fit in memory
        """
        if max_leaf_size < 1:
            raise ValueError(f"max_leaf_size must be >= 1, got {max_leaf_size}")

        self.objects: List[Hittable] = list(objects)  # Reordered during the build
        self.max_leaf_size = max_leaf_size
        self.nodes: List[BVHNode] = []
        self.root: Optional[int] = None

        boxes = []
        for obj in self.objects:
            box = obj.bounding_box()
            if box is None:
                raise SceneConstructionError(f"Unbounded object cannot be placed in a BVH: {obj!r}")
            boxes.append(box)

        if not self.objects:
            return

        try:
            order = list(range(len(self.objects)))
            self.root = self._build(order, boxes, 0, len(order))
        except MemoryError as e:
            self.nodes = []
            raise ResourceExhaustion(f"Out of memory building BVH over {len(self.objects)} objects") from e

        self.objects = [self.objects[i] for i in order]
        logger.debug(
            "Built BVH: %d objects, %d nodes, depth %d",
            len(self.objects), len(self.nodes), self.depth()
        )

    def _build(self, order: List[int], boxes: List[AABB], start: int, end: int) -> int:
        """Recursively build the subtree over order[start:end], returning its index."""
        span = end - start

        bbox = boxes[order[start]]
        for i in range(start + 1, end):
            bbox = AABB.surrounding_box(bbox, boxes[order[i]])

        if span <= self.max_leaf_size:
            self.nodes.append(BVHNode(bbox=bbox, start=start, count=span))
            return len(self.nodes) - 1

        # Split on the longest axis of the centroid bounds
        centroids = [
            tuple(boxes[order[i]].centroid(axis) for axis in range(3))
            for i in range(start, end)
        ]
        extents = [
            max(c[axis] for c in centroids) - min(c[axis] for c in centroids)
            for axis in range(3)
        ]
        axis = extents.index(max(extents))

        order[start:end] = sorted(order[start:end], key=lambda i: boxes[i].centroid(axis))
        mid = start + span // 2

        # Reserve the slot so the parent precedes its children
        index = len(self.nodes)
        self.nodes.append(None)
        left = self._build(order, boxes, start, mid)
        right = self._build(order, boxes, mid, end)
        self.nodes[index] = BVHNode(bbox=bbox, left=left, right=right)
        return index

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray intersection using the BVH.

        Subtrees whose box the ray misses within [t_min, closest_t] are
        pruned; the closest record over all visited leaves is returned.
        """
        if self.root is None:
            return None

        closest_hit: Optional[HitRecord] = None
        closest_t = t_max
        stack = [self.root]

        while stack:
            node = self.nodes[stack.pop()]
            if not node.bbox.hit(ray, t_min, closest_t):
                continue

            if node.is_leaf:
                for obj in self.objects[node.start:node.start + node.count]:
                    hit_record = obj.hit(ray, t_min, closest_t)
                    if hit_record is not None:
                        closest_hit = hit_record
                        closest_t = hit_record.t
            else:
                stack.append(node.right)
                stack.append(node.left)

        return closest_hit

    def bounding_box(self) -> Optional[AABB]:
        """Return the bounding box for the entire BVH."""
        if self.root is None:
            return None
        return self.nodes[self.root].bbox

    def depth(self) -> int:
        """Return the number of levels in the tree (0 when empty)."""
        if self.root is None:
            return 0
        deepest = 0
        stack = [(self.root, 1)]
        while stack:
            index, level = stack.pop()
            node = self.nodes[index]
            deepest = max(deepest, level)
            if not node.is_leaf:
                stack.append((node.left, level + 1))
                stack.append((node.right, level + 1))
        return deepest

    def __len__(self) -> int:
        """Return the number of objects in the BVH."""
        return len(self.objects)


def build_bvh(scene: HittableList, max_leaf_size: int = 2) -> BVH:
    """Convenience function to build a BVH from a HittableList.

    Args:
        scene: The scene as a HittableList
        max_leaf_size: Maximum objects per leaf node

    Returns:
        A BVH acceleration structure
    """
    return BVH(list(scene.objects), max_leaf_size)
