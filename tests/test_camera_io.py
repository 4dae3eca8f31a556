"""
Tests for camera state persistence.
"""

import json

import numpy as np
import pytest

from cloud_viewer3d.rendering.camera import Camera
from cloud_viewer3d.utils.camera_io import (
    SLOT_COUNT,
    load_camera_state,
    save_camera_state,
    slot_path,
)


@pytest.fixture
def moved_camera():
    camera = Camera(640, 480, set_viewport=lambda *args: None)
    camera.rotate(0.123456789, -2.5)
    camera.pan(1.0 / 3.0, 2.0, -7.0)
    camera.update(0.7)
    return camera


class TestSlotPath:
    """Tests for slot_path."""

    def test_name(self, tmp_path):
        assert slot_path(tmp_path, 3) == tmp_path / "camera_3.json"

    @pytest.mark.parametrize("index", [-1, SLOT_COUNT])
    def test_out_of_range(self, tmp_path, index):
        with pytest.raises(ValueError):
            slot_path(tmp_path, index)


class TestSaveLoad:
    """Tests for save_camera_state / load_camera_state."""

    def test_round_trip_is_exact(self, moved_camera, tmp_path):
        state = moved_camera.state()
        path = save_camera_state(tmp_path / "nested" / "view.json", state)
        assert path.exists()

        loaded = load_camera_state(path)
        np.testing.assert_array_equal(loaded.transform.disp, state.transform.disp)
        np.testing.assert_array_equal(loaded.transform.rot, state.transform.rot)
        assert loaded.theta == state.theta
        assert loaded.phi == state.phi

    def test_written_layout(self, moved_camera, tmp_path):
        path = save_camera_state(tmp_path / "view.json", moved_camera.state())
        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"transform", "theta", "phi"}
        assert set(data["transform"]) == {"disp", "rot"}
        assert len(data["transform"]["disp"]) == 3
        assert set(data["transform"]["rot"]) == {"s", "v"}

    def test_restored_camera_renders_identically(self, moved_camera, tmp_path):
        path = save_camera_state(tmp_path / "view.json", moved_camera.state())
        other = Camera(640, 480, set_viewport=lambda *args: None)
        other.set_state(load_camera_state(path))
        np.testing.assert_array_equal(other.get_view_projection(), moved_camera.get_view_projection())

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_camera_state(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(ValueError):
            load_camera_state(path)

    def test_scale_is_accepted_when_one(self, tmp_path):
        path = tmp_path / "scaled.json"
        path.write_text(json.dumps({
            "transform": {"disp": [1, 2, 3], "rot": {"s": 1, "v": [0, 0, 0]}, "scale": 1.0},
            "theta": 0.5,
            "phi": -0.5,
        }), encoding="utf-8")
        state = load_camera_state(path)
        np.testing.assert_array_equal(state.transform.disp, [1.0, 2.0, 3.0])
        assert state.transform.scale == 1.0
