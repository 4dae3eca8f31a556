from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from cloud_viewer3d.core.point_cloud import demo_cloud, flat_colors, height_colors, load_points
from cloud_viewer3d.params import ViewerParams
from cloud_viewer3d.rendering.camera import CameraState
from cloud_viewer3d.utils.camera_io import load_camera_state

logger = logging.getLogger(__name__)


class CloudViewerApp:
    def __init__(self, params: ViewerParams) -> None:
        self.params = params
        for warning in self.params.validate():
            logger.warning("[params] %s", warning)
        self.points = self._load_points()
        self.colors = self._colors_for(self.points)
        self.initial_state = self._load_initial_state()

    def _load_points(self) -> np.ndarray:
        path = self.params.points_path
        if path and Path(path).exists():
            return load_points(path, max_points=self.params.max_points)
        logger.info("Generating demo cloud: %d points (seed=%d)", self.params.demo_point_count, self.params.seed)
        return demo_cloud(self.params.demo_point_count, radius=self.params.demo_radius, seed=self.params.seed)

    def _colors_for(self, points: np.ndarray) -> np.ndarray:
        if self.params.color_by_height:
            return height_colors(points)
        return flat_colors(len(points))

    def _load_initial_state(self) -> CameraState | None:
        path = self.params.initial_state
        if not path or not Path(path).exists():
            return None
        state = load_camera_state(path)
        logger.info("Starting from camera state %s", path)
        return state

    def run(self) -> None:
        from cloud_viewer3d.rendering.pyglet_viewer import run_viewer

        run_viewer(
            width=self.params.width,
            height=self.params.height,
            points=self.points,
            colors=self.colors,
            title=self.params.title,
            background_rgb=tuple(self.params.background),  # type: ignore[arg-type]
            point_size=self.params.point_size,
            target_fps=self.params.target_fps,
            mac_compat=self.params.mac_compat,
            state_dir=self.params.state_dir or None,
            initial_state=self.initial_state,
        )
