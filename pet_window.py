"""GTK3 transparent floating window for the Claude GIF Pet.

Creates a borderless, always-on-top, RGBA-transparent window that shows
whatever frame the animator last emitted. When the current state has no
GIF assigned, a simple placeholder (colored disc with the state name)
is drawn instead.
"""

from __future__ import annotations

import logging
import math
import subprocess

import cairo
import gi

gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
gi.require_version("GdkPixbuf", "2.0")
from gi.repository import Gdk, GdkPixbuf, GLib, Gtk  # noqa: E402
from PIL import Image  # noqa: E402

from claude_bridge import ClaudeBridge  # noqa: E402
from gif_assignment import GifAssignment  # noqa: E402
from pet_state import PetState  # noqa: E402
from state_machine import PetStateMachine  # noqa: E402

logger = logging.getLogger(__name__)

PREVIEW_STATES = tuple(PetState)

PLACEHOLDER_COLORS: dict[PetState, tuple[float, float, float]] = {
    PetState.IDLE: (0.55, 0.60, 0.70),
    PetState.THINKING: (0.45, 0.55, 0.95),
    PetState.WORKING: (0.95, 0.65, 0.20),
    PetState.HAPPY: (0.35, 0.80, 0.40),
    PetState.SAD: (0.40, 0.45, 0.60),
    PetState.CELEBRATING: (0.95, 0.40, 0.70),
    PetState.SLEEPING: (0.30, 0.30, 0.45),
}


def pixbuf_from_image(image: Image.Image) -> GdkPixbuf.Pixbuf:
    """Wrap an RGBA PIL image in a GdkPixbuf."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    width, height = image.size
    data = GLib.Bytes.new(image.tobytes())
    return GdkPixbuf.Pixbuf.new_from_bytes(
        data, GdkPixbuf.Colorspace.RGB, True, 8, width, height, width * 4
    )


class PetWindow(Gtk.Window):
    """Transparent floating pet window.

    Uses POPUP type to bypass the window manager, so it is always
    rendered on top.
    """

    def __init__(
        self,
        machine: PetStateMachine,
        bridge: ClaudeBridge,
        assignment: GifAssignment,
        size: int = 120,
    ) -> None:
        super().__init__(type=Gtk.WindowType.POPUP)

        self.machine = machine
        self.bridge = bridge
        self.assignment = assignment
        self._size = size

        self._pixbuf: GdkPixbuf.Pixbuf | None = None
        self._drag_active = False
        self._drag_offset_x = 0.0
        self._drag_offset_y = 0.0

        self._setup_window()
        self._setup_drawing()
        self._setup_input()
        self._place_on_screen()
        self._connect_machine()

    # ------------------------------------------------------------------
    # Window configuration
    # ------------------------------------------------------------------

    def _setup_window(self) -> None:
        self.set_default_size(self._size, self._size)
        self.set_resizable(False)
        self.set_decorated(False)
        self.set_keep_above(True)
        self.stick()
        self.set_skip_taskbar_hint(True)
        self.set_skip_pager_hint(True)

        screen = self.get_screen()
        visual = screen.get_rgba_visual()
        if visual is not None:
            self.set_visual(visual)
            logger.debug("RGBA visual enabled")
        else:
            logger.warning("RGBA visual not available")

        self.set_app_paintable(True)
        self.set_type_hint(Gdk.WindowTypeHint.DOCK)
        self.connect("realize", self._on_realize)
        self.connect("destroy", self._on_destroy)

    def _setup_drawing(self) -> None:
        self._drawing_area = Gtk.DrawingArea()
        self._drawing_area.set_size_request(self._size, self._size)
        self._drawing_area.connect("draw", self._on_draw)
        self.add(self._drawing_area)

    def _setup_input(self) -> None:
        self.add_events(
            Gdk.EventMask.BUTTON_PRESS_MASK
            | Gdk.EventMask.BUTTON_RELEASE_MASK
            | Gdk.EventMask.POINTER_MOTION_MASK
        )
        self.connect("button-press-event", self._on_button_press)
        self.connect("button-release-event", self._on_button_release)
        self.connect("motion-notify-event", self._on_motion)

    def _place_on_screen(self) -> None:
        screen = self.get_screen()
        geom = screen.get_monitor_geometry(screen.get_primary_monitor())
        margin = 50
        x = geom.x + geom.width - self._size - margin
        y = geom.y + geom.height - self._size - margin
        self.move(x, y)
        logger.debug("Window placed at (%d, %d)", x, y)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _connect_machine(self) -> None:
        self.machine.animator.on_frame = self._on_frame
        self.machine.on_state_changed = self._on_state_changed
        self.machine.on_clear_frame = self._on_clear_frame

    def _on_frame(self, image: Image.Image) -> None:
        self._pixbuf = pixbuf_from_image(image)
        self._drawing_area.queue_draw()

    def _on_state_changed(self, state: PetState) -> None:
        logger.info("State changed to: %s", state.value)
        self._drawing_area.queue_draw()

    def _on_clear_frame(self) -> None:
        self._pixbuf = None
        self._drawing_area.queue_draw()

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _on_draw(self, widget: Gtk.DrawingArea, ctx: cairo.Context) -> bool:
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_rgba(0, 0, 0, 0)
        ctx.paint()
        ctx.set_operator(cairo.OPERATOR_OVER)

        width = widget.get_allocated_width()
        height = widget.get_allocated_height()

        if self._pixbuf is not None:
            self._draw_frame(ctx, width, height)
        else:
            self._draw_placeholder(ctx, width, height)
        return True

    def _draw_frame(self, ctx: cairo.Context, width: int, height: int) -> None:
        pw = self._pixbuf.get_width()
        ph = self._pixbuf.get_height()
        # Fit inside the window, keeping aspect ratio
        scale = min(width / pw, height / ph)

        ctx.save()
        ctx.translate((width - pw * scale) / 2, (height - ph * scale) / 2)
        ctx.scale(scale, scale)
        Gdk.cairo_set_source_pixbuf(ctx, self._pixbuf, 0, 0)
        ctx.paint()
        ctx.restore()

    def _draw_placeholder(self, ctx: cairo.Context, width: int, height: int) -> None:
        state = self.machine.current_state
        r, g, b = PLACEHOLDER_COLORS[state]
        radius = min(width, height) * 0.35

        ctx.save()
        ctx.arc(width / 2, height / 2, radius, 0, 2 * math.pi)
        ctx.set_source_rgba(r, g, b, 0.9)
        ctx.fill()

        label = state.value
        ctx.select_font_face("Sans", cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_BOLD)
        ctx.set_font_size(max(9, self._size // 10))
        extents = ctx.text_extents(label)
        text_x = (width - extents.width) / 2 - extents.x_bearing
        text_y = (height - extents.height) / 2 - extents.y_bearing

        # Dark outline for readability on any background
        ctx.set_source_rgba(0, 0, 0, 0.8)
        for dx, dy in [(-1, -1), (-1, 1), (1, -1), (1, 1)]:
            ctx.move_to(text_x + dx, text_y + dy)
            ctx.show_text(label)

        ctx.set_source_rgba(1, 1, 1, 0.95)
        ctx.move_to(text_x, text_y)
        ctx.show_text(label)
        ctx.restore()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _on_button_press(self, widget: Gtk.Window, event: Gdk.EventButton) -> bool:
        if event.button == 1:
            self._drag_active = True
            win_x, win_y = self.get_position()
            self._drag_offset_x = event.x_root - win_x
            self._drag_offset_y = event.y_root - win_y
            return True
        elif event.button == 3:
            self._show_context_menu(event)
            return True
        return False

    def _on_button_release(self, widget: Gtk.Window, event: Gdk.EventButton) -> bool:
        if event.button == 1:
            self._drag_active = False
            return True
        return False

    def _on_motion(self, widget: Gtk.Window, event: Gdk.EventMotion) -> bool:
        if self._drag_active:
            self.move(
                int(event.x_root - self._drag_offset_x),
                int(event.y_root - self._drag_offset_y),
            )
            return True
        return False

    # ------------------------------------------------------------------
    # Context menu
    # ------------------------------------------------------------------

    def _show_context_menu(self, event: Gdk.EventButton) -> None:
        menu = Gtk.Menu()

        header = Gtk.MenuItem(label=f"State: {self.machine.current_state.value}")
        header.set_sensitive(False)
        menu.append(header)
        menu.append(Gtk.SeparatorMenuItem())

        for state in PREVIEW_STATES:
            item = Gtk.MenuItem(label=state.value.capitalize())
            item.connect("activate", self._on_menu_set_state, state)
            menu.append(item)

        menu.append(Gtk.SeparatorMenuItem())

        reload_item = Gtk.MenuItem(label="Reload settings")
        reload_item.connect("activate", self._on_menu_reload)
        menu.append(reload_item)

        quit_item = Gtk.MenuItem(label="Quit")
        quit_item.connect("activate", self._on_menu_quit)
        menu.append(quit_item)

        menu.show_all()
        menu.popup_at_pointer(event)

    def _on_menu_set_state(self, widget: Gtk.MenuItem, state: PetState) -> None:
        self.machine.transition(state)

    def _on_menu_reload(self, widget: Gtk.MenuItem) -> None:
        self.assignment.load()
        self.machine.load_gif_for_current_state()

    def _on_menu_quit(self, widget: Gtk.MenuItem) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def _cleanup(self) -> None:
        self.bridge.stop()
        self.machine.stop()

    def _on_realize(self, widget: Gtk.Window) -> None:
        """Disable compositor shadow/border on this window."""
        try:
            xid = self.get_window().get_xid()
            subprocess.Popen(
                ["xprop", "-id", str(xid),
                 "-f", "_COMPTON_SHADOW", "32c",
                 "-set", "_COMPTON_SHADOW", "0"],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )
            logger.debug("Set _COMPTON_SHADOW=0 on xid %d", xid)
        except Exception:
            logger.debug("Could not set _COMPTON_SHADOW")

    def _on_destroy(self, widget: Gtk.Window) -> None:
        self._cleanup()
        Gtk.main_quit()
