#!/usr/bin/env python3
"""
LumenPath - A Python Path Tracing Renderer

Main entry point for rendering the built-in scenes.
"""

import argparse
import logging
import sys
import time

import numpy as np

from lumenpath.vec3 import Vec3, Color, Point3
from lumenpath.camera import Camera
from lumenpath.errors import LumenPathError
from lumenpath.materials import Lambertian, Metal, Dielectric
from lumenpath.renderer import Renderer, RenderSettings
from lumenpath.scene import Scene
from lumenpath.shapes import Sphere


def create_demo_scene() -> list:
    """Create a demo scene with one sphere of each material."""
    world = []

    # Ground
    ground_material = Lambertian(Color(0.5, 0.5, 0.5))
    world.append(Sphere(Point3(0, -1000, 0), 1000, ground_material))

    # Center sphere - glass
    world.append(Sphere(Point3(0, 1, 0), 1.0, Dielectric(1.5)))

    # Left sphere - diffuse
    world.append(Sphere(Point3(-4, 1, 0), 1.0, Lambertian(Color(0.4, 0.2, 0.1))))

    # Right sphere - metal
    world.append(Sphere(Point3(4, 1, 0), 1.0, Metal(Color(0.7, 0.6, 0.5), 0.0)))

    return world


def create_single_sphere_scene() -> list:
    """A grey sphere in front of the camera, resting on a large ground sphere."""
    return [
        Sphere(Point3(0, 0, -1), 0.5, Lambertian(Color(0.5, 0.5, 0.5))),
        Sphere(Point3(0, -100.5, -1), 100, Lambertian(Color(0.8, 0.8, 0.0))),
    ]


def create_random_spheres_scene(seed: int = 0) -> list:
    """Many small spheres with random materials around the demo scene."""
    rng = np.random.default_rng(seed)
    world = create_demo_scene()

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = Point3(a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            if (center - Point3(4, 0.2, 0)).length() <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = Color.from_array(rng.random(3) * rng.random(3))
                material = Lambertian(albedo)
            elif choose_mat < 0.95:
                albedo = Color.from_array(rng.uniform(0.5, 1.0, 3))
                material = Metal(albedo, float(rng.uniform(0.0, 0.5)))
            else:
                material = Dielectric(1.5)
            world.append(Sphere(center, 0.2, material))

    return world


def create_camera(scene_name: str, settings: RenderSettings) -> Camera:
    """Camera placement for each built-in scene."""
    if scene_name == 'single':
        return Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -1),
            vup=Vec3(0, 1, 0),
            vfov=90,
            aspect_ratio=settings.aspect_ratio
        )
    return Camera(
        look_from=Point3(13, 2, 3),
        look_at=Point3(0, 0, 0),
        vup=Vec3(0, 1, 0),
        vfov=20,
        aspect_ratio=settings.aspect_ratio,
        aperture=0.1,
        focus_dist=10.0
    )


SCENES = {
    'demo': create_demo_scene,
    'single': create_single_sphere_scene,
    'spheres': create_random_spheres_scene,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='LumenPath - A Python Path Tracing Renderer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --scene demo --output render.png
  python main.py --width 400 --height 225 --samples 50 --output small.png
  python main.py --scene spheres --samples 500 --tone-mapping reinhard
        '''
    )

    parser.add_argument('--width', type=int, default=400, help='Image width (default: 400)')
    parser.add_argument('--height', type=int, default=225, help='Image height (default: 225)')
    parser.add_argument('--samples', type=int, default=50, help='Samples per pixel (default: 50)')
    parser.add_argument('--depth', type=int, default=50, help='Max ray depth (default: 50)')
    parser.add_argument('--threads', type=int, default=0, help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, default=0, help='Seed for all random streams (default: 0)')
    parser.add_argument('--russian-roulette', action='store_true', help='Terminate dim paths early')
    parser.add_argument('--tone-mapping', type=str, default=None,
                        choices=['linear', 'reinhard', 'reinhard_extended'],
                        help='Tone mapping operator applied before gamma')
    parser.add_argument('--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--scene', type=str, default='demo', choices=sorted(SCENES),
                        help='Scene to render (default: demo)')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only show warnings and errors')
    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            num_threads=args.threads,
            seed=args.seed,
            russian_roulette=args.russian_roulette,
            tone_mapping=args.tone_mapping,
            output_path=args.output
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        return render(args.scene, settings, quiet=args.quiet)
    except LumenPathError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


def render(scene_name: str, settings: RenderSettings, quiet: bool = False) -> int:
    """Build the named scene, render it and write the output file."""
    if not quiet:
        print("=" * 60)
        print("LumenPath Path Tracer")
        print("=" * 60)
        print(f"  Resolution: {settings.width}x{settings.height}")
        print(f"  Samples: {settings.samples_per_pixel}")
        print(f"  Max Depth: {settings.max_depth}")
        print(f"  Threads: {settings.num_threads}")

    scene = Scene.from_objects(SCENES[scene_name]())
    camera = create_camera(scene_name, settings)

    renderer = Renderer(settings)

    # Progress tracking
    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    if not quiet:
        renderer.set_progress_callback(progress_callback)
        print(f"\nScene '{scene_name}': {len(scene)} objects")

    start_time = time.time()
    accumulator = renderer.render_accumulator(scene, camera)
    elapsed = time.time() - start_time

    if not quiet:
        print(f"\nRender completed in {elapsed:.2f} seconds")
        if accumulator.anomalies:
            print(f"  {accumulator.anomalies} non-finite samples were counted as black")

    renderer.save_image(accumulator.to_uint8(settings.gamma, renderer.tone_mapper), settings.output_path)

    if not quiet:
        print(f"Saved to: {settings.output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
