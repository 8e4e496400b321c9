"""
Renderer module - the heart of the ray tracer.

Implements:
- Tile-based rendering on a thread pool
- Per-sample random streams seeded from (seed, pixel, sample index)
- Gamma correction and optional tone mapping
- Image output through Pillow
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
import logging
import os
import time

import numpy as np

from .accumulator import ImageAccumulator, finalize_image, to_uint8
from .camera import Camera
from .errors import OutputError
from .integrator import PathTracer, RussianRoulette
from .scene import Scene
from .tonemapping import ToneMapper, ToneMappingOperator, create_tone_mapper

logger = logging.getLogger(__name__)

Tile = Tuple[int, int, int, int]


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 800
    height: int = 600
    samples_per_pixel: int = 100
    max_depth: int = 50
    tile_size: int = 32
    num_threads: int = 0  # 0 = auto-detect
    gamma: float = 2.2
    seed: int = 0
    russian_roulette: bool = False
    tone_mapping: Optional[str] = None
    output_path: str = "output/render.png"

    # Option names accepted by from_dict in addition to the field names
    ALIASES = {"samples": "samples_per_pixel", "depth": "max_depth", "threads": "num_threads"}

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel < 0:
            raise ValueError(f"samples_per_pixel must be >= 0, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {self.tile_size}")
        if self.gamma <= 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.seed < 0:
            raise ValueError(f"seed must be >= 0, got {self.seed}")
        if self.tone_mapping is not None:
            try:
                ToneMappingOperator(self.tone_mapping)
            except ValueError:
                raise ValueError(f"Unknown tone mapping operator: {self.tone_mapping}") from None
        if self.num_threads < 0:
            raise ValueError(f"num_threads must be >= 0, got {self.num_threads}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RenderSettings:
        """Build settings from a plain mapping (e.g. a parsed config file).

        Raises:
            ValueError: For unknown option names or invalid values
        """
        names = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = cls.ALIASES.get(key, key)
            if name not in names:
                raise ValueError(f"Unknown render option: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class Renderer:
    """Path tracing renderer with multi-threading support."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self.integrator = PathTracer(
            max_depth=self.settings.max_depth,
            russian_roulette=RussianRoulette() if self.settings.russian_roulette else None
        )
        self.tone_mapper: Optional[ToneMapper] = (
            create_tone_mapper(self.settings.tone_mapping) if self.settings.tone_mapping else None
        )
        self._progress_callback: Optional[Callable[[float], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def render_accumulator(self, scene: Scene, camera: Camera) -> ImageAccumulator:
        """Render the scene into a fresh accumulator.

        Each tile is rendered by one worker into its own buffer; the
        buffers are merged once all tiles are done.
        """
        width = self.settings.width
        height = self.settings.height
        accumulator = ImageAccumulator(width, height)

        tiles = self._generate_tiles(width, height)
        total_tiles = len(tiles)
        completed_tiles = 0

        logger.info(
            "Rendering %dx%d, %d spp, max depth %d, %d tiles on %d threads",
            width, height, self.settings.samples_per_pixel, self.settings.max_depth,
            total_tiles, self.settings.num_threads
        )
        start = time.perf_counter()

        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                futures = [executor.submit(self._render_tile, tile, scene, camera) for tile in tiles]
                for future in as_completed(futures):
                    (x0, y0, _, _), tile_acc = future.result()
                    accumulator.add_tile(x0, y0, tile_acc.sums, tile_acc.counts, tile_acc.anomalies)
                    completed_tiles += 1
                    if self._progress_callback:
                        self._progress_callback(completed_tiles / total_tiles)
        else:
            for tile in tiles:
                (x0, y0, _, _), tile_acc = self._render_tile(tile, scene, camera)
                accumulator.add_tile(x0, y0, tile_acc.sums, tile_acc.counts, tile_acc.anomalies)
                completed_tiles += 1
                if self._progress_callback:
                    self._progress_callback(completed_tiles / total_tiles)

        elapsed = time.perf_counter() - start
        logger.info("Render finished in %.2fs", elapsed)
        if accumulator.anomalies:
            logger.warning("%d non-finite samples were treated as black", accumulator.anomalies)
        return accumulator

    def render(self, scene: Scene, camera: Camera) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            scene: The scene to render
            camera: The camera to render from

        Returns:
            HDR image as numpy array of shape (height, width, 3)
        """
        return self.render_accumulator(scene, camera).mean()

    def _render_tile(self, tile: Tile, scene: Scene, camera: Camera) -> Tuple[Tile, ImageAccumulator]:
        """Render a single tile into a private accumulator."""
        x0, y0, x1, y1 = tile
        width = self.settings.width
        height = self.settings.height
        samples = self.settings.samples_per_pixel
        seed = self.settings.seed
        tile_acc = ImageAccumulator(x1 - x0, y1 - y0)

        for y in range(y0, y1):
            for x in range(x0, x1):
                if samples == 0:
                    # Integrator bypassed: background along the pixel-centre ray
                    rng = pixel_rng(seed, x, y, 0)
                    ray = camera.get_ray((x + 0.5) / width, (height - 1 - y + 0.5) / height, rng)
                    tile_acc.set_pixel(x - x0, y - y0, scene.background(ray.direction))
                    continue

                for s in range(samples):
                    rng = pixel_rng(seed, x, y, s)
                    u = (x + rng.random()) / width
                    v = (height - 1 - y + rng.random()) / height
                    ray = camera.get_ray(u, v, rng)
                    tile_acc.add_sample(x - x0, y - y0, self.integrator.radiance(ray, scene, rng))

        return tile, tile_acc

    def _generate_tiles(self, width: int, height: int) -> list[Tile]:
        """Generate tiles for parallel rendering.

        Args:
            width: Image width
            height: Image height

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles

    def to_ldr(self, hdr_image: np.ndarray) -> np.ndarray:
        """Convert HDR image to 8-bit LDR with tone mapping and gamma correction.

        Args:
            hdr_image: HDR image array (float64)

        Returns:
            LDR image as uint8 array
        """
        return to_uint8(finalize_image(hdr_image, self.settings.gamma, self.tone_mapper))

    def save_image(self, image: np.ndarray, filename: str) -> None:
        """Save image to file.

        Args:
            image: Image array (HDR float or LDR uint8)
            filename: Output filename (extension determines format)

        Raises:
            OutputError: If the image cannot be encoded or written
        """
        from PIL import Image as PILImage

        if image.dtype == np.float64 or image.dtype == np.float32:
            image = self.to_ldr(image)

        try:
            Path(filename).parent.mkdir(parents=True, exist_ok=True)
            pil_image = PILImage.fromarray(np.ascontiguousarray(image))
            pil_image.save(filename)
        except (OSError, ValueError, KeyError) as e:
            raise OutputError(f"Could not write image to {filename}: {e}") from e
        logger.info("Saved %s", filename)


def pixel_rng(seed: int, x: int, y: int, sample: int) -> np.random.Generator:
    """Random stream for one sample of one pixel, independent of scheduling."""
    return np.random.default_rng([seed, y, x, sample])
