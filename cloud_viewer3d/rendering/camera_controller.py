"""
Input bindings for the viewer camera.

This module maps named input events coming from the window layer (key names,
mouse button names, scroll steps, resize events) onto :class:`Camera` calls,
and binds the digit keys to saved camera slots.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cloud_viewer3d.rendering.camera import Camera
from cloud_viewer3d.utils.camera_io import load_camera_state, save_camera_state, slot_path

logger = logging.getLogger(__name__)

MOVE_KEYS = {
    "w": "moving_forward",
    "s": "moving_backward",
    "a": "moving_left",
    "d": "moving_right",
    "q": "moving_up",
    "z": "moving_down",
}

TURN_KEYS = {
    "left": "turning_left",
    "right": "turning_right",
    "up": "turning_up",
    "down": "turning_down",
}

KEY_FLAGS = {**MOVE_KEYS, **TURN_KEYS}

SLOT_KEYS = {str(i): i for i in range(10)}

ROTATE_BUTTONS = {"left"}
PAN_BUTTONS = {"right", "middle"}


class CameraController:
    """
    Routes window events to a single camera.

    Key names are lowercase (``"w"``, ``"left"``, ``"3"``); mouse buttons are
    ``"left"``, ``"middle"`` or ``"right"``. Drag deltas use the window-system
    convention of y growing downwards.
    """

    def __init__(self, camera: Camera, state_dir: str | Path | None = None):
        """
        Initialize the controller.

        Args:
            camera: Camera to drive
            state_dir: Folder for numbered camera slots; slots are disabled
                when None
        """
        self.camera = camera
        self.state_dir = Path(state_dir) if state_dir is not None else None

    def on_key_press(self, name: str, ctrl: bool = False) -> bool:
        """
        Handle a key press.

        Movement and turning keys latch their flag. Digits restore the
        matching camera slot, or save it when ``ctrl`` is held.

        Returns:
            True if the key is bound to a camera action
        """
        name = name.lower()
        flag = KEY_FLAGS.get(name)
        if flag is not None:
            setattr(self.camera, flag, True)
            return True
        slot = SLOT_KEYS.get(name)
        if slot is not None and self.state_dir is not None:
            if ctrl:
                self.save_slot(slot)
            else:
                self.load_slot(slot)
            return True
        return False

    def on_key_release(self, name: str) -> bool:
        flag = KEY_FLAGS.get(name.lower())
        if flag is None:
            return False
        setattr(self.camera, flag, False)
        return True

    def release_all(self) -> None:
        """Clear every held key, e.g. when the window loses focus."""
        for flag in KEY_FLAGS.values():
            setattr(self.camera, flag, False)

    def on_mouse_drag(self, dx: float, dy: float, buttons: set[str] | frozenset[str]) -> None:
        """
        Handle mouse motion with buttons held.

        The left button rotates; right or middle pans. Rotation wins when
        both are held.
        """
        if buttons & ROTATE_BUTTONS:
            self.camera.mouse_drag_rotate(dx, dy)
        elif buttons & PAN_BUTTONS:
            self.camera.mouse_drag_pan(dx, dy)

    def on_mouse_scroll(self, scroll_y: float) -> None:
        self.camera.mouse_wheel(scroll_y)

    def on_resize(self, width: int, height: int) -> bool:
        """
        Forward a resize to the camera.

        Zero-sized windows (minimised) are skipped.

        Returns:
            True if the camera was resized
        """
        if width <= 0 or height <= 0:
            logger.debug("Ignoring resize to %dx%d", width, height)
            return False
        self.camera.set_size(width, height)
        return True

    def save_slot(self, index: int) -> Path | None:
        if self.state_dir is None:
            return None
        try:
            path = save_camera_state(slot_path(self.state_dir, index), self.camera.state())
        except OSError as exc:
            logger.warning("[camera] could not save slot %d: %s", index, exc)
            return None
        logger.info("[camera] saved slot %d to %s", index, path)
        return path

    def load_slot(self, index: int) -> bool:
        """
        Restore a camera slot.

        Missing or unreadable slots are logged and leave the camera untouched.

        Returns:
            True if the camera state was restored
        """
        if self.state_dir is None:
            return False
        path = slot_path(self.state_dir, index)
        try:
            state = load_camera_state(path)
        except FileNotFoundError:
            logger.warning("[camera] slot %d is empty (%s)", index, path)
            return False
        except (OSError, ValueError) as exc:
            logger.warning("[camera] could not load slot %d: %s", index, exc)
            return False
        self.camera.set_state(state)
        logger.info("[camera] restored slot %d from %s", index, path)
        return True
