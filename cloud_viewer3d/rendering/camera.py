"""
Fly-through camera for the point cloud viewer.

The camera turns input events (held keys, mouse drags, wheel steps and
scripted pan/rotate calls) into a rigid transform that is advanced once per
frame by :meth:`Camera.update`. Orientation is tracked as two unbounded
angles, ``theta`` (yaw around z) and ``phi`` (pitch around x); the transform's
quaternion is rebuilt from them whenever they change.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

import numpy as np
from pyglet.math import Mat4  # type: ignore

from cloud_viewer3d.rendering.transform import (
    RigidTransform,
    from_pyglet_mat4,
    identity_quaternion,
    quat_from_angle_x,
    quat_from_angle_z,
    quat_multiply,
    quat_rotate,
)

logger = logging.getLogger(__name__)

FIELD_OF_VIEW_DEG = 45.0
NEAR_PLANE = 0.1
FAR_PLANE = 10000.0

START_POSITION = (0.0, 0.0, 150.0)
DEFAULT_MOVEMENT_SPEED = 10.0
MIN_MOVEMENT_SPEED = 0.01
WHEEL_SPEED_STEP = 0.1
TURNING_SPEED = 0.15  # rad/s added per held turning key
DRAG_PAN_SCALE = 100.0

ViewportSetter = Callable[[int, int, int, int], None]


def _gl_viewport(x: int, y: int, width: int, height: int) -> None:
    from pyglet import gl  # type: ignore

    gl.glViewport(x, y, width, height)


@dataclass
class RotationAngle:
    """A (theta, phi) pair in radians."""
    theta: float = 0.0
    phi: float = 0.0

    def is_zero(self) -> bool:
        return self.theta == 0.0 and self.phi == 0.0

    def reset(self) -> None:
        self.theta = 0.0
        self.phi = 0.0


@dataclass(eq=False)
class CameraState:
    """
    Serializable camera snapshot.

    Holds everything needed to restore position and orientation. Runtime-only
    values (input accumulators, movement speed, key flags) are not part of it.

    Attributes:
        transform: Camera-to-world rigid transform (scale is always 1)
        theta: Yaw in radians
        phi: Pitch in radians
    """
    transform: RigidTransform
    theta: float
    phi: float

    def to_dict(self) -> dict[str, Any]:
        rot = self.transform.rot
        return {
            "transform": {
                "disp": [float(c) for c in self.transform.disp],
                "rot": {"s": float(rot[0]), "v": [float(rot[1]), float(rot[2]), float(rot[3])]},
            },
            "theta": float(self.theta),
            "phi": float(self.phi),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CameraState":
        """
        Build a state from the record produced by :meth:`to_dict`.

        Raises:
            ValueError: if a field is missing or has the wrong shape
        """
        if not isinstance(data, dict):
            raise ValueError("Camera state must be a JSON object.")
        try:
            transform = data["transform"]
            disp = [float(c) for c in transform["disp"]]
            rot = transform["rot"]
            rot_s = float(rot["s"])
            rot_v = [float(c) for c in rot["v"]]
            scale = float(transform.get("scale", 1.0))
            theta = float(data["theta"])
            phi = float(data["phi"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed camera state: missing or invalid field {exc}") from exc

        if len(disp) != 3:
            raise ValueError(f"transform.disp needs 3 components, got {len(disp)}")
        if len(rot_v) != 3:
            raise ValueError(f"transform.rot.v needs 3 components, got {len(rot_v)}")
        if scale != 1.0:
            raise ValueError(f"transform.scale must be 1.0, got {scale}")

        return cls(
            transform=RigidTransform(np.array(disp), np.array([rot_s, *rot_v])),
            theta=theta,
            phi=phi,
        )


class Camera:
    """
    Interactive camera driven by flags and accumulators.

    Input methods only stage deltas; :meth:`update` consumes and clears them
    once per frame. Single-threaded: call everything from the UI thread.
    """

    def __init__(
        self,
        width: int,
        height: int,
        set_viewport: ViewportSetter | None = None,
    ) -> None:
        """
        Initialize the camera 150 units back from the origin, looking at it.

        Args:
            width: Viewport width in pixels
            height: Viewport height in pixels
            set_viewport: Called with (x, y, width, height) on every resize.
                Defaults to ``pyglet.gl.glViewport``.
        """
        self.moving_backward = False
        self.moving_forward = False
        self.moving_left = False
        self.moving_right = False
        self.moving_down = False
        self.moving_up = False
        self.turning_left = False
        self.turning_right = False
        self.turning_down = False
        self.turning_up = False

        self.width = 0
        self.height = 0

        self._set_viewport = set_viewport if set_viewport is not None else _gl_viewport
        self._movement_speed = DEFAULT_MOVEMENT_SPEED
        self._theta = 0.0
        self._phi = 0.0
        self._pan = np.zeros(3)

        # Angular velocity requested by keys or rotate(); scaled by elapsed time.
        self._rotation_speed = RotationAngle()

        # Absolute rotation from a mouse drag; overrides _rotation_speed for the frame.
        self._delta_rotation = RotationAngle()

        self._moved = True
        self._transform = RigidTransform(np.array(START_POSITION), identity_quaternion())
        self._projection = np.identity(4)

        self.set_size(width, height)

    @property
    def movement_speed(self) -> float:
        return self._movement_speed

    @property
    def theta(self) -> float:
        return self._theta

    @property
    def phi(self) -> float:
        return self._phi

    @property
    def position(self) -> np.ndarray:
        return self._transform.disp.copy()

    @property
    def projection_matrix(self) -> np.ndarray:
        return self._projection.copy()

    def state(self) -> CameraState:
        return CameraState(transform=self._transform.copy(), theta=self._theta, phi=self._phi)

    def set_state(self, state: CameraState) -> None:
        """
        Restore position and orientation.

        Pending input accumulators are kept and blend into the next update.
        """
        self._transform = state.transform.copy()
        self._theta = float(state.theta)
        self._phi = float(state.phi)
        self._moved = True
        logger.debug("Camera state restored: theta=%.4f phi=%.4f disp=%s",
                      self._theta, self._phi, self._transform.disp)

    def set_size(self, width: int, height: int) -> None:
        """
        Resize the viewport and recompute the projection.

        Raises:
            ValueError: if width or height is not positive
        """
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._projection = from_pyglet_mat4(
            Mat4.perspective_projection(
                aspect=width / height, z_near=NEAR_PLANE, z_far=FAR_PLANE, fov=FIELD_OF_VIEW_DEG
            )
        )
        self._set_viewport(0, 0, width, height)
        self._moved = True
        logger.debug("Viewport resized to %dx%d", width, height)

    def get_view_projection(self) -> np.ndarray:
        """
        World-to-clip matrix: ``projection @ inverse(transform)``.

        Raises:
            NonInvertibleTransformError: if the camera transform was corrupted,
                e.g. by a state with a zero quaternion
        """
        return self._projection @ self._transform.inverse_matrix()

    def update(self, elapsed: float | timedelta) -> bool:
        """
        Advance the camera by one frame.

        Args:
            elapsed: Time since the previous call, in seconds or as a timedelta

        Returns:
            True if the camera moved (or was resized/restored) since the last call.
        """
        moved = self._moved
        self._moved = False

        direction = np.zeros(3)
        if self.moving_right:
            direction[0] += 1.0
        if self.moving_left:
            direction[0] -= 1.0
        if self.moving_backward:
            direction[2] += 1.0
        if self.moving_forward:
            direction[2] -= 1.0
        if self.moving_up:
            direction[1] += 1.0
        if self.moving_down:
            direction[1] -= 1.0
        norm = float(np.linalg.norm(direction))
        if norm > 0.0:
            self._pan += direction / norm

        if isinstance(elapsed, timedelta):
            elapsed_seconds = elapsed.total_seconds()
        else:
            elapsed_seconds = float(elapsed)

        if self.turning_left:
            self._rotation_speed.theta += TURNING_SPEED
        if self.turning_right:
            self._rotation_speed.theta -= TURNING_SPEED
        if self.turning_up:
            self._rotation_speed.phi += TURNING_SPEED
        if self.turning_down:
            self._rotation_speed.phi -= TURNING_SPEED

        if np.any(self._pan != 0.0):
            moved = True
            translation = quat_rotate(
                self._transform.rot,
                self._pan * self._movement_speed * elapsed_seconds,
            )
            self._transform.disp = self._transform.disp + translation

        if not self._rotation_speed.is_zero() or not self._delta_rotation.is_zero():
            moved = True
            if not self._delta_rotation.is_zero():
                self._theta += self._delta_rotation.theta
                self._phi += self._delta_rotation.phi
            else:
                self._theta += self._rotation_speed.theta * elapsed_seconds
                self._phi += self._rotation_speed.phi * elapsed_seconds
            self._transform.rot = quat_multiply(
                quat_from_angle_z(self._theta),
                quat_from_angle_x(self._phi),
            )

        self._pan = np.zeros(3)
        self._rotation_speed.reset()
        self._delta_rotation.reset()
        return moved

    def mouse_drag_pan(self, delta_x: float, delta_y: float) -> None:
        """Stage a pan from a drag of (delta_x, delta_y) pixels, y pointing down."""
        self._pan[0] -= DRAG_PAN_SCALE * float(delta_x) / self.width
        self._pan[1] += DRAG_PAN_SCALE * float(delta_y) / self.height

    def mouse_drag_rotate(self, delta_x: float, delta_y: float) -> None:
        """Stage a rotation; dragging across the whole viewport is one full turn."""
        self._delta_rotation.theta -= 2.0 * math.pi * float(delta_x) / self.width
        self._delta_rotation.phi -= 2.0 * math.pi * float(delta_y) / self.height

    def mouse_wheel(self, delta: float) -> None:
        if delta == 0:
            return
        sign = 1.0 if delta > 0 else -1.0
        self._movement_speed += sign * WHEEL_SPEED_STEP * self._movement_speed
        self._movement_speed = max(self._movement_speed, MIN_MOVEMENT_SPEED)
        logger.debug("Movement speed: %.4f", self._movement_speed)

    def pan(self, x: float, y: float, z: float) -> None:
        self._pan += np.array([x, y, z], dtype=np.float64)

    def rotate(self, up: float, around: float) -> None:
        """Add angular velocity (rad/s): ``up`` pitches, ``around`` yaws."""
        self._rotation_speed.phi += float(up)
        self._rotation_speed.theta += float(around)
