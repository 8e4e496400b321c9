"""
Monte Carlo path tracing integrator.

A path starts at a camera ray and bounces through the scene until it
escapes to the background, is absorbed, runs out of depth, or is
terminated by Russian roulette. The walk is iterative: the product of
the attenuations seen so far is carried as the path throughput.

A path whose hit data turns non-finite ends with NaN radiance; the image
accumulator records it as one black sample.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

import numpy as np

from .ray import Ray
from .scene import Scene
from .shapes import T_EPSILON
from .vec3 import Color, DegenerateVectorError

logger = logging.getLogger(__name__)


class PathState(Enum):
    """How a path ended."""
    MISS = "miss"
    ABSORBED = "absorbed"
    DEPTH_EXCEEDED = "depth_exceeded"
    TERMINATED = "terminated"
    NUMERIC_ANOMALY = "numeric_anomaly"


@dataclass
class PathResult:
    """Radiance carried back along a path and how the path ended."""
    radiance: Color
    state: PathState
    bounces: int


@dataclass
class RussianRoulette:
    """Probabilistic path termination.

    After `min_bounces` bounces a path survives with probability
    max(throughput), clamped to [1 - max_termination, 1]. Survivors are
    reweighted by 1 / survival so the estimate stays unbiased.
    """
    min_bounces: int = 3
    max_termination: float = 0.95

    def __post_init__(self):
        if self.min_bounces < 0:
            raise ValueError(f"min_bounces must be >= 0, got {self.min_bounces}")
        if not 0.0 <= self.max_termination < 1.0:
            raise ValueError(f"max_termination must be in [0, 1), got {self.max_termination}")

    def termination_probability(self, throughput: Color) -> float:
        survival = min(1.0, max(throughput.max_component(), 0.0))
        return min(1.0 - survival, self.max_termination)


class PathTracer:
    """Iterative path tracer with an optional Russian roulette policy."""

    def __init__(
        self,
        max_depth: int = 50,
        t_min: float = T_EPSILON,
        russian_roulette: Optional[RussianRoulette] = None
    ):
        """Create a path tracer.

        Args:
            max_depth: Maximum number of rays traced per path (camera ray included)
            t_min: Lower bound of every intersection interval
            russian_roulette: Termination policy, None to always trace to max_depth
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.max_depth = max_depth
        self.t_min = t_min
        self.russian_roulette = russian_roulette

    def trace(self, ray: Ray, scene: Scene, rng: np.random.Generator) -> PathResult:
        """Follow one path and return its radiance estimate.

        Args:
            ray: The camera (or any starting) ray
            scene: The scene to trace against
            rng: Random generator owned by the caller

        Returns:
            PathResult with the radiance and the terminal state
        """
        throughput = Color(1.0, 1.0, 1.0)
        depth = self.max_depth
        bounces = 0

        while True:
            if depth <= 0:
                return PathResult(Color(0, 0, 0), PathState.DEPTH_EXCEEDED, bounces)

            hit = scene.hit(ray, max(self.t_min, ray.t_min), ray.t_max)
            if hit is None:
                return PathResult(throughput * scene.background(ray.direction), PathState.MISS, bounces)

            if hit.material is None:
                return PathResult(Color(0, 0, 0), PathState.ABSORBED, bounces)
            try:
                scatter = hit.material.scatter(ray, hit, rng)
            except DegenerateVectorError as e:
                logger.debug("Path abandoned after %d bounces: %s", bounces, e)
                nan = float("nan")
                return PathResult(Color(nan, nan, nan), PathState.NUMERIC_ANOMALY, bounces)
            if scatter is None:
                return PathResult(Color(0, 0, 0), PathState.ABSORBED, bounces)

            throughput = throughput * scatter.attenuation
            ray = scatter.scattered_ray
            depth -= 1
            bounces += 1

            if self.russian_roulette is not None and bounces >= self.russian_roulette.min_bounces:
                p = self.russian_roulette.termination_probability(throughput)
                if p > 0.0:
                    if rng.random() < p:
                        return PathResult(Color(0, 0, 0), PathState.TERMINATED, bounces)
                    throughput = throughput / (1.0 - p)

    def radiance(self, ray: Ray, scene: Scene, rng: np.random.Generator) -> Color:
        """Return only the radiance estimate for a ray."""
        return self.trace(ray, scene, rng).radiance
