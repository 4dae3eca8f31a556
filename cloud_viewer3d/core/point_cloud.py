"""
Point cloud loading and colouring for the viewer.

Supported inputs:
- ``.xyz`` / ``.txt``: whitespace separated columns, x y z first
- ``.csv``: comma separated, optional header row, x y z first
- ``.npy``: array of shape (N, >=3)

When no file is given, :func:`demo_cloud` builds a deterministic terrain
patch with a floating sphere, laid out with z up.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

POINT_SUFFIXES = {".xyz", ".txt", ".csv", ".npy"}

# Height gradient stops: low (deep blue) -> mid (green) -> high (sand) -> peak (white)
HEIGHT_GRADIENT_STOPS = [
    (0.0, (40, 100, 190)),
    (0.4, (70, 170, 90)),
    (0.75, (225, 200, 140)),
    (1.0, (250, 250, 250)),
]

DEFAULT_COLOR = (188, 214, 255)


def load_points(path: str | Path, max_points: int | None = None) -> np.ndarray:
    """
    Load xyz positions from disk.

    Args:
        path: Point file (.xyz, .txt, .csv or .npy)
        max_points: Keep at most this many points (uniform stride subsample)

    Returns:
        float32 array of shape (N, 3)

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: for unknown suffixes or files without three columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    suffix = path.suffix.lower()
    if suffix not in POINT_SUFFIXES:
        raise ValueError(f"Unsupported point file type: {suffix or '(none)'}")

    if suffix == ".npy":
        data = np.atleast_2d(np.load(path))
    else:
        delimiter = "," if suffix == ".csv" else None
        # Header rows parse as NaN and are dropped below.
        data = np.genfromtxt(path, delimiter=delimiter, comments="#", dtype=np.float64, ndmin=2)

    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        return np.zeros((0, 3), dtype=np.float32)
    if data.shape[1] < 3:
        raise ValueError(f"{path} needs at least 3 columns, got {data.shape[1]}")

    points = data[:, :3]
    points = points[np.all(np.isfinite(points), axis=1)]
    points = subsample(points, max_points)
    logger.info("Loaded %d points from %s", len(points), path)
    return points.astype(np.float32)


def subsample(points: np.ndarray, max_points: int | None) -> np.ndarray:
    """Keep at most ``max_points`` rows using a uniform stride."""
    if max_points is None or len(points) <= max_points:
        return points
    stride = int(math.ceil(len(points) / float(max_points)))
    return points[::stride][:max_points]


def demo_cloud(count: int, radius: float = 60.0, seed: int = 1) -> np.ndarray:
    """
    Procedural cloud: a rolling terrain patch plus a sphere hovering above it.

    Args:
        count: Total number of points
        radius: Half-size of the terrain patch
        seed: RNG seed, the same seed gives the same cloud

    Returns:
        float32 array of shape (count, 3)
    """
    count = max(0, int(count))
    rng = np.random.default_rng(seed)
    n_sphere = count // 5
    n_terrain = count - n_sphere

    xy = rng.uniform(-radius, radius, size=(n_terrain, 2))
    wave = 2.0 * math.pi / radius
    z = (radius / 8.0) * np.sin(xy[:, 0] * wave) * np.cos(xy[:, 1] * wave)
    terrain = np.column_stack([xy, z])

    directions = rng.normal(size=(n_sphere, 3))
    lengths = np.linalg.norm(directions, axis=1, keepdims=True)
    lengths[lengths == 0.0] = 1.0
    sphere = directions / lengths * (radius / 4.0)
    sphere[:, 2] += radius / 2.0

    return np.vstack([terrain, sphere]).astype(np.float32)


def height_colors(
    points: np.ndarray,
    stops: list[tuple[float, tuple[int, int, int]]] | None = None,
    alpha: int = 255,
) -> np.ndarray:
    """
    Colour points by their z coordinate.

    Args:
        points: (N, 3) positions
        stops: Gradient stops as (t, (r, g, b)) with t ascending in [0, 1]
        alpha: Output alpha value

    Returns:
        uint8 array of shape (N, 4)
    """
    if stops is None:
        stops = HEIGHT_GRADIENT_STOPS
    n = len(points)
    colors = np.empty((n, 4), dtype=np.uint8)
    colors[:, 3] = alpha
    if n == 0:
        return colors

    z = np.asarray(points, dtype=np.float64)[:, 2]
    z_min = float(z.min())
    z_max = float(z.max())
    if z_max - z_min < 1e-12:
        t = np.zeros(n)
    else:
        t = (z - z_min) / (z_max - z_min)

    ts = [s[0] for s in stops]
    for channel in range(3):
        values = [s[1][channel] for s in stops]
        colors[:, channel] = np.rint(np.interp(t, ts, values)).astype(np.uint8)
    return colors


def flat_colors(count: int, color: tuple[int, int, int] = DEFAULT_COLOR, alpha: int = 255) -> np.ndarray:
    colors = np.empty((int(count), 4), dtype=np.uint8)
    colors[:, :3] = color
    colors[:, 3] = alpha
    return colors
