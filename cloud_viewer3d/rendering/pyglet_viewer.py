from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from cloud_viewer3d.rendering.camera import Camera, CameraState
from cloud_viewer3d.rendering.camera_controller import CameraController
from cloud_viewer3d.rendering.transform import to_pyglet_mat4

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "WASD move | Q/Z up/down | Arrows turn | Left drag rotate | Right drag pan | "
    "Wheel speed | 0-9 load view | Ctrl+0-9 save view | ESC quit"
)


def run_viewer(
    *,
    width: int,
    height: int,
    points: np.ndarray,
    colors: np.ndarray,
    title: str = "cloud_viewer3d",
    background_rgb: tuple[int, int, int] = (11, 16, 32),
    point_size: float = 2.0,
    target_fps: int = 60,
    mac_compat: bool = True,
    state_dir: str | Path | None = None,
    initial_state: CameraState | None = None,
) -> None:
    try:
        import pyglet  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("Missing dependency: install pyglet (pip install pyglet).") from e

    from pyglet import gl  # type: ignore
    from pyglet.math import Mat4  # type: ignore
    from pyglet.window import key, mouse  # type: ignore

    if mac_compat:
        # Some macOS drivers behave better without the shadow window; also force vsync to avoid busy-looping.
        pyglet.options["shadow_window"] = False
        pyglet.options["vsync"] = True

    # Multisampling is skipped under mac_compat; any rejected config falls back to the default one.
    samples = 0 if mac_compat else 4
    try:
        config = gl.Config(double_buffer=True, depth_size=24, sample_buffers=int(samples > 0), samples=samples)
        window = pyglet.window.Window(
            width=width, height=height, caption=title, config=config, resizable=True, vsync=True
        )
    except pyglet.window.NoSuchConfigException as exc:
        logger.debug("GL config rejected (%s), using the default one", exc)
        window = pyglet.window.Window(width=width, height=height, caption=title, resizable=True, vsync=True)

    def set_viewport(x: int, y: int, w: int, h: int) -> None:
        # Window sizes are in logical pixels; the framebuffer may be denser.
        ratio = float(window.get_pixel_ratio())
        gl.glViewport(int(x * ratio), int(y * ratio), int(w * ratio), int(h * ratio))

    camera = Camera(window.width, window.height, set_viewport=set_viewport)
    if initial_state is not None:
        camera.set_state(initial_state)
    controller = CameraController(camera, state_dir=state_dir)

    bg_r, bg_g, bg_b = background_rgb
    gl.glClearColor(bg_r / 255.0, bg_g / 255.0, bg_b / 255.0, 1.0)
    gl.glEnable(gl.GL_DEPTH_TEST)
    gl.glPointSize(float(point_size))

    fps_display = pyglet.window.FPSDisplay(window)
    fps_display.label.anchor_x = "right"
    fps_display.label.anchor_y = "top"
    fps_display.label.x = window.width - 10
    fps_display.label.y = window.height - 10

    help_label = pyglet.text.Label(
        HELP_TEXT,
        x=10,
        y=10,
        anchor_x="left",
        anchor_y="bottom",
        font_size=12,
        color=(235, 240, 255, 245),
    )

    point_program = pyglet.graphics.get_default_shader()
    vertex_list = None
    point_count = int(len(points))
    if point_count:
        vertex_list = point_program.vertex_list(
            point_count,
            gl.GL_POINTS,
            position=("f", np.ascontiguousarray(points, dtype=np.float32).reshape(-1).tolist()),
            colors=("Bn", np.ascontiguousarray(colors, dtype=np.uint8).reshape(-1).tolist()),
        )
    logger.info("Uploaded %d points", point_count)

    view_projection = to_pyglet_mat4(camera.get_view_projection())

    key_names = {
        key.W: "w",
        key.A: "a",
        key.S: "s",
        key.D: "d",
        key.Q: "q",
        key.Z: "z",
        key.UP: "up",
        key.DOWN: "down",
        key.LEFT: "left",
        key.RIGHT: "right",
        key._0: "0",
        key._1: "1",
        key._2: "2",
        key._3: "3",
        key._4: "4",
        key._5: "5",
        key._6: "6",
        key._7: "7",
        key._8: "8",
        key._9: "9",
    }

    def button_names(buttons: int) -> set[str]:
        names = set()
        if buttons & mouse.LEFT:
            names.add("left")
        if buttons & mouse.MIDDLE:
            names.add("middle")
        if buttons & mouse.RIGHT:
            names.add("right")
        return names

    def caption() -> str:
        return f"{title} | speed {camera.movement_speed:.2f}"

    def apply_3d_camera() -> None:
        window.projection = view_projection
        window.view = Mat4()

    def apply_2d_overlay() -> None:
        window.projection = Mat4.orthogonal_projection(0, max(window.width, 1), 0, max(window.height, 1), -1, 1)
        window.view = Mat4()

    @window.event
    def on_draw() -> None:
        window.clear()
        gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)

        gl.glEnable(gl.GL_DEPTH_TEST)
        apply_3d_camera()
        if vertex_list is not None:
            point_program.use()
            gl.glPointSize(float(point_size))
            vertex_list.draw(gl.GL_POINTS)

        gl.glDisable(gl.GL_DEPTH_TEST)
        apply_2d_overlay()
        help_label.draw()
        fps_display.draw()

    @window.event
    def on_resize(w: int, h: int) -> bool:
        controller.on_resize(w, h)
        fps_display.label.x = w - 10
        fps_display.label.y = h - 10
        help_label.y = 10
        # Skip pyglet's default handler, which resets viewport and projection.
        return pyglet.event.EVENT_HANDLED

    @window.event
    def on_deactivate() -> None:
        controller.release_all()

    @window.event
    def on_close() -> None:
        pyglet.app.exit()

    @window.event
    def on_key_press(symbol: int, modifiers: int) -> bool | None:
        if symbol == key.ESCAPE:
            pyglet.app.exit()
            return pyglet.event.EVENT_HANDLED
        name = key_names.get(symbol)
        if name is None:
            return None
        ctrl = bool(modifiers & (key.MOD_CTRL | key.MOD_COMMAND))
        if controller.on_key_press(name, ctrl=ctrl):
            return pyglet.event.EVENT_HANDLED
        return None

    @window.event
    def on_key_release(symbol: int, modifiers: int) -> None:  # noqa: ARG001
        name = key_names.get(symbol)
        if name is not None:
            controller.on_key_release(name)

    @window.event
    def on_mouse_drag(x: int, y: int, dx: int, dy: int, buttons: int, modifiers: int) -> None:  # noqa: ARG001
        # pyglet's y axis points up; the camera expects window-system deltas (y down).
        controller.on_mouse_drag(float(dx), -float(dy), button_names(buttons))

    @window.event
    def on_mouse_scroll(x: int, y: int, scroll_x: float, scroll_y: float) -> None:  # noqa: ARG001
        controller.on_mouse_scroll(scroll_y)
        window.set_caption(caption())

    def tick(dt: float) -> None:
        nonlocal view_projection
        if camera.update(dt):
            view_projection = to_pyglet_mat4(camera.get_view_projection())

    window.set_caption(caption())
    pyglet.clock.schedule_interval(tick, 1.0 / max(10, target_fps))
    pyglet.app.run()
