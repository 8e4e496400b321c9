"""
LumenPath - A Python Path Tracing Renderer

An offline, physically-based renderer with support for:
- Monte Carlo path tracing with optional Russian roulette
- Lambertian, metal and dielectric materials
- Bounding volume hierarchy (BVH) acceleration
- Depth of field
- Reproducible multi-threaded tile rendering
"""

__version__ = "0.1.0"
__author__ = "LumenPath Team"

from .errors import (
    LumenPathError, SceneConstructionError, NumericAnomaly,
    ResourceExhaustion, OutputError
)
from .vec3 import (
    Vec3, Point3, Color, DegenerateVectorError, TotalInternalReflection,
    random_in_unit_disk, random_in_unit_sphere, random_unit_vector,
    random_cosine_direction
)
from .ray import Ray
from .shapes import Sphere, HittableList, AABB, HitRecord, Hittable, T_EPSILON
from .bvh import BVH, BVHNode, build_bvh
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric, NullMaterial
from .camera import Camera
from .background import Background, SolidBackground, SkyGradient
from .scene import Scene
from .integrator import PathTracer, PathState, PathResult, RussianRoulette
from .accumulator import ImageAccumulator, finalize_image
from .tonemapping import (
    ToneMapper, ToneMappingOperator, LinearToneMapper, ReinhardToneMapper,
    create_tone_mapper, apply_gamma, luminance
)
from .renderer import Renderer, RenderSettings, pixel_rng
