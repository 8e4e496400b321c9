"""Tests for the path tracing integrator."""

import pytest
import math
import numpy as np

from lumenpath.background import SolidBackground, SkyGradient
from lumenpath.integrator import PathTracer, PathState, RussianRoulette
from lumenpath.materials import Dielectric, Lambertian, Metal, NullMaterial
from lumenpath.ray import Ray
from lumenpath.scene import Scene
from lumenpath.shapes import AABB, HitRecord, Hittable, Sphere
from lumenpath.vec3 import Vec3, Point3, Color


WHITE_SKY = SolidBackground(Color(1.0, 1.0, 1.0))


class NonFiniteShape(Hittable):
    """Reports a hit whose point and normal are NaN."""

    def __init__(self, material):
        self.material = material

    def hit(self, ray, t_min, t_max):
        if not t_min < 1.0 < t_max:
            return None
        nan = Vec3(math.nan, math.nan, math.nan)
        return HitRecord(point=nan, normal=nan, t=1.0, front_face=True, material=self.material)

    def bounding_box(self):
        return AABB(Point3(-100, -100, -100), Point3(100, 100, 100))


def forward_ray():
    return Ray(Point3(0, 0, 0), Vec3(0, 0, -1))


class TestPathTracer:
    """Test PathTracer.trace() terminal states."""

    def test_zero_depth_is_black(self):
        scene = Scene.from_objects([], WHITE_SKY)
        result = PathTracer(max_depth=0).trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.DEPTH_EXCEEDED
        assert result.radiance == Color(0, 0, 0)
        assert result.bounces == 0

    def test_miss_returns_background(self):
        background = SolidBackground(Color(0.2, 0.3, 0.4))
        scene = Scene.from_objects([], background)
        result = PathTracer().trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.MISS
        assert result.radiance == Color(0.2, 0.3, 0.4)
        assert result.bounces == 0

    def test_miss_uses_ray_direction(self):
        sky = SkyGradient()
        scene = Scene.from_objects([], sky)
        up = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        assert PathTracer().radiance(up, scene, np.random.default_rng(0)) == sky.zenith_color

    def test_null_material_absorbs(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, -3), 1.0, NullMaterial())], WHITE_SKY)
        result = PathTracer().trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.ABSORBED
        assert result.radiance == Color(0, 0, 0)

    def test_missing_material_absorbs(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, -3), 1.0)], WHITE_SKY)
        result = PathTracer().trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.ABSORBED

    def test_mirror_reflects_background(self):
        albedo = Color(0.9, 0.5, 0.1)
        scene = Scene.from_objects(
            [Sphere(Point3(0, 0, -3), 1.0, Metal(albedo, 0.0))],
            SolidBackground(Color(0.5, 1.0, 1.0))
        )
        result = PathTracer().trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.MISS
        assert result.bounces == 1
        assert result.radiance == Color(0.45, 0.5, 0.1)

    def test_convex_diffuse_bounces_once(self):
        # A scattered ray never re-hits a convex shape it left
        scene = Scene.from_objects([Sphere(Point3(0, 0, -3), 1.0, Lambertian(Color(0.25, 0.5, 0.75)))], WHITE_SKY)
        tracer = PathTracer()
        rng = np.random.default_rng(4)
        for _ in range(50):
            result = tracer.trace(forward_ray(), scene, rng)
            assert result.bounces == 1
            assert result.radiance == Color(0.25, 0.5, 0.75)

    def test_trapped_path_exceeds_depth(self):
        # Camera inside a mirrored sphere: the path never escapes
        scene = Scene.from_objects([Sphere(Point3(0, 0, 0), 10.0, Metal(Color(1, 1, 1), 0.0))], WHITE_SKY)
        result = PathTracer(max_depth=5).trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.DEPTH_EXCEEDED
        assert result.bounces == 5
        assert result.radiance == Color(0, 0, 0)

    def test_enclosed_diffuse_is_black(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, 0), 10.0, Lambertian(Color(0.9, 0.9, 0.9)))], WHITE_SKY)
        tracer = PathTracer(max_depth=8)
        rng = np.random.default_rng(1)
        for _ in range(10):
            assert tracer.radiance(forward_ray(), scene, rng) == Color(0, 0, 0)

    def test_same_seed_same_result(self):
        scene = Scene.from_objects([
            Sphere(Point3(0, 0, -1), 0.5, Lambertian(Color(0.5, 0.5, 0.5))),
            Sphere(Point3(0, -100.5, -1), 100, Metal(Color(0.8, 0.8, 0.8), 0.3)),
        ])
        tracer = PathTracer(max_depth=10)
        ray = Ray(Point3(0, 0, 0), Vec3(0.1, -0.2, -1).normalize())
        a = tracer.trace(ray, scene, np.random.default_rng(77))
        b = tracer.trace(ray, scene, np.random.default_rng(77))
        assert a.radiance == b.radiance
        assert a.bounces == b.bounces

    def test_more_samples_reduce_variance(self):
        scene = Scene.from_objects([
            Sphere(Point3(0, 0, -1), 0.5, Lambertian(Color(0.5, 0.5, 0.5))),
            Sphere(Point3(0, -100.5, -1), 100, Lambertian(Color(0.8, 0.8, 0.0))),
        ])
        tracer = PathTracer(max_depth=10)
        ray = Ray(Point3(0, 0, 0), Vec3(0.0, -0.6, -1).normalize())

        def estimate(seed, samples):
            rng = np.random.default_rng(seed)
            return np.mean([tracer.radiance(ray, scene, rng).y for _ in range(samples)])

        single = [estimate(seed, 1) for seed in range(20)]
        many = [estimate(seed, 16) for seed in range(20)]
        assert np.var(many) < np.var(single)

    @pytest.mark.parametrize("material", [
        Lambertian(Color(0.5, 0.5, 0.5)),
        Metal(Color(0.5, 0.5, 0.5), 0.3),
        Dielectric(1.5),
    ])
    def test_non_finite_hit_is_reported_not_raised(self, material):
        scene = Scene.from_objects([NonFiniteShape(material)], WHITE_SKY)
        result = PathTracer().trace(forward_ray(), scene, np.random.default_rng(0))
        assert result.state == PathState.NUMERIC_ANOMALY
        assert not result.radiance.is_finite()
        assert result.bounces == 0

    def test_ray_interval_is_honoured(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, -5), 1.0, NullMaterial())], WHITE_SKY)
        tracer = PathTracer()
        rng = np.random.default_rng(0)
        short = Ray(Point3(0, 0, 0), Vec3(0, 0, -1), t_max=3.0)
        assert tracer.trace(short, scene, rng).state == PathState.MISS
        beyond = Ray(Point3(0, 0, 0), Vec3(0, 0, -1), t_min=6.5)
        assert tracer.trace(beyond, scene, rng).state == PathState.MISS
        assert tracer.trace(forward_ray(), scene, rng).state == PathState.ABSORBED

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            PathTracer(max_depth=-1)


class TestRussianRoulette:
    """Test the Russian roulette termination policy."""

    def test_bright_paths_never_terminate(self):
        assert RussianRoulette().termination_probability(Color(1, 1, 1)) == 0.0
        assert RussianRoulette().termination_probability(Color(2, 0, 0)) == 0.0

    def test_probability_follows_max_component(self):
        p = RussianRoulette().termination_probability(Color(0.25, 0.1, 0.0))
        assert abs(p - 0.75) < 1e-12

    def test_probability_is_capped(self):
        policy = RussianRoulette(max_termination=0.9)
        assert policy.termination_probability(Color(0, 0, 0)) == 0.9

    @pytest.mark.parametrize("kwargs", [{"min_bounces": -1}, {"max_termination": 1.0}, {"max_termination": -0.1}])
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            RussianRoulette(**kwargs)

    def test_terminates_dim_paths(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, -3), 1.0, Lambertian(Color(0.5, 0.5, 0.5)))], WHITE_SKY)
        tracer = PathTracer(russian_roulette=RussianRoulette(min_bounces=1))
        rng = np.random.default_rng(3)
        states = {tracer.trace(forward_ray(), scene, rng).state for _ in range(100)}
        assert states == {PathState.MISS, PathState.TERMINATED}

    def test_survivors_are_reweighted(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, -3), 1.0, Lambertian(Color(0.5, 0.5, 0.5)))], WHITE_SKY)
        tracer = PathTracer(russian_roulette=RussianRoulette(min_bounces=1))
        rng = np.random.default_rng(5)
        results = [tracer.trace(forward_ray(), scene, rng) for _ in range(2000)]

        for result in results:
            if result.state == PathState.MISS:
                assert result.radiance == Color(1, 1, 1)

        # Unbiased: the mean matches the albedo seen without roulette
        mean = np.mean([r.radiance.x for r in results])
        assert abs(mean - 0.5) < 0.05

    def test_not_applied_before_min_bounces(self):
        scene = Scene.from_objects([Sphere(Point3(0, 0, -3), 1.0, Lambertian(Color(0.5, 0.5, 0.5)))], WHITE_SKY)
        tracer = PathTracer(russian_roulette=RussianRoulette(min_bounces=2))
        rng = np.random.default_rng(6)
        for _ in range(50):
            assert tracer.trace(forward_ray(), scene, rng).state == PathState.MISS
