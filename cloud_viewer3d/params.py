from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class ViewerParams:
    width: int = 1100
    height: int = 720
    background: tuple[int, int, int] = (11, 16, 32)
    title: str = "cloud_viewer3d"

    points_path: str = ""  # empty = procedural demo cloud
    max_points: int = 2_000_000
    demo_point_count: int = 200_000
    demo_radius: float = 60.0
    seed: int = 1
    point_size: float = 2.0
    color_by_height: bool = True

    target_fps: int = 60
    mac_compat: bool = True  # pyglet options for macOS (no MSAA, shadow window off)

    state_dir: str = "camera_states"
    initial_state: str = ""  # camera state JSON applied at startup

    log_level: str = "INFO"
    log_file: str = ""

    def clamp(self) -> "ViewerParams":
        self.width = max(320, int(self.width))
        self.height = max(240, int(self.height))
        self.background = tuple(min(255, max(0, int(c))) for c in tuple(self.background)[:3])  # type: ignore[assignment]
        if len(self.background) != 3:
            self.background = (11, 16, 32)
        self.title = str(self.title or "cloud_viewer3d")
        self.points_path = str(self.points_path or "").strip()
        self.max_points = max(1, int(self.max_points))
        self.demo_point_count = max(1, min(self.max_points, int(self.demo_point_count)))
        self.demo_radius = max(1.0, float(self.demo_radius))
        self.seed = int(self.seed)
        self.point_size = min(32.0, max(1.0, float(self.point_size)))
        self.color_by_height = bool(self.color_by_height)
        self.target_fps = max(10, min(240, int(self.target_fps)))
        self.mac_compat = bool(self.mac_compat)
        self.state_dir = str(self.state_dir or "camera_states").strip()
        self.initial_state = str(self.initial_state or "").strip()
        self.log_level = str(self.log_level or "INFO").strip().upper()
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            self.log_level = "INFO"
        self.log_file = str(self.log_file or "").strip()
        return self

    def validate(self) -> list[str]:
        warnings: list[str] = []

        if self.points_path:
            path = Path(self.points_path)
            if not path.exists():
                warnings.append(f"points_path {self.points_path} does not exist; using demo cloud.")
            elif path.suffix.lower() not in {".xyz", ".txt", ".csv", ".npy"}:
                warnings.append(f"points_path suffix {path.suffix or '(none)'} is not a known point format.")
        if self.initial_state and not Path(self.initial_state).exists():
            warnings.append(f"initial_state {self.initial_state} does not exist; starting from default view.")
        if not self.points_path and self.demo_point_count > 1_000_000:
            warnings.append("demo_point_count above 1M may be slow to generate.")

        return warnings

    @classmethod
    def load(cls, path: str | Path) -> "ViewerParams":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("The parameters file must contain a JSON object.")
        filtered: dict[str, Any] = {k: v for k, v in data.items() if k in cls.__annotations__}
        return cls(**filtered).clamp()

    def save(self, path: str | Path) -> None:
        data = asdict(self)
        Path(path).write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
