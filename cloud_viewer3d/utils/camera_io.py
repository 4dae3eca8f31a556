"""
Camera state persistence.

Camera snapshots are stored as small JSON files. Numbered slots map to
``camera_<index>.json`` inside a state directory so that the viewer can bind
them to the digit keys.

Usage:
    >>> from cloud_viewer3d.utils.camera_io import save_camera_state, load_camera_state
    >>> save_camera_state("view.json", camera.state())
    >>> camera.set_state(load_camera_state("view.json"))
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from cloud_viewer3d.rendering.camera import CameraState

logger = logging.getLogger(__name__)

SLOT_COUNT = 10


def slot_path(directory: str | Path, index: int) -> Path:
    """
    Path of a numbered camera slot.

    Args:
        directory: Folder holding the slot files
        index: Slot number in [0, SLOT_COUNT)

    Returns:
        ``directory / camera_<index>.json``
    """
    index = int(index)
    if not 0 <= index < SLOT_COUNT:
        raise ValueError(f"Camera slot must be in [0, {SLOT_COUNT}), got {index}")
    return Path(directory) / f"camera_{index}.json"


def save_camera_state(path: str | Path, state: CameraState) -> Path:
    """
    Write a camera state as JSON, creating parent folders.

    Returns:
        Path to the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
    logger.debug("Camera state written to %s", path)
    return path


def load_camera_state(path: str | Path) -> CameraState:
    """
    Read a camera state written by :func:`save_camera_state`.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the content is not a valid camera state
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    return CameraState.from_dict(data)
