# pyglet front end: the window renders the framebuffer, feeds the keypad,
# plays the buzzer and drives the machine's two clocks.

import logging

import pyglet
from pyglet.media import synthesis
from pyglet.media.exceptions import MediaException
from pyglet.window import key

from .constants import HEIGHT, WIDTH
from .errors import Chip8Fault
from .video import framebuffer_to_rgba

logger = logging.getLogger(__name__)


def resolve_keymap(keymap):
    """Turn {"Q": 0x4, ...} into {pyglet symbol: keypad index}."""
    resolved = {}
    for name, index in keymap.items():
        symbol = getattr(key, name, None)
        if symbol is None:
            raise ValueError(f"unknown key name: {name!r}")
        resolved[symbol] = index
    return resolved


class Chip8Window(pyglet.window.Window):

    def __init__(self, machine, config, rom_name="CHIP-8"):
        self.scale = config.scale
        self.window_width, self.window_height = WIDTH * config.scale, HEIGHT * config.scale
        super().__init__(
            width=self.window_width,
            height=self.window_height,
            caption=f"CHIP-8 Emulator - {rom_name}",
            resizable=False,
            vsync=False,
        )

        self.machine = machine
        self.config = config
        self.keymap = resolve_keymap(config.keymap)
        self.fault = None

        # ---- Performance Counters ----
        self._fps_counter = 0
        self._cps_counter = 0
        self._cycle_debt = 0.0
        self.fps_label = self._make_label("FPS: 0", 15)
        self.cps_label = self._make_label("Cycles/s: 0", 30)

        self.image = pyglet.image.ImageData(
            self.window_width,
            self.window_height,
            'RGBA',
            self._render_bytes(),
        )

        # ---- Sound ----
        self.beep_player = None
        self.sound_playing = False

        # Schedule the loops
        pyglet.clock.schedule_interval(self._cpu_tick, 1.0 / config.timer_hz)
        pyglet.clock.schedule_interval(self._timer_tick, 1.0 / config.timer_hz)
        pyglet.clock.schedule_interval(self._update_bench, 1.0)

    def _make_label(self, text, offset):
        return pyglet.text.Label(
            text,
            font_size=12,
            x=5,
            y=self.window_height - offset,
            anchor_x='left',
            anchor_y='center',
            color=(255, 255, 255, 255),
        )

    def _render_bytes(self):
        return framebuffer_to_rgba(
            self.machine.framebuffer,
            scale=self.scale,
            foreground=self.config.foreground,
            background=self.config.background,
        ).tobytes()

    # ---- CPU cycle ----
    def _cpu_tick(self, dt):
        # run as many instructions as cpu_hz asks for in the elapsed time
        self._cycle_debt += dt * self.config.cpu_hz
        steps = int(self._cycle_debt)
        self._cycle_debt -= steps
        try:
            for _ in range(steps):
                self.machine.step()
        except Chip8Fault as e:
            logger.error("Emulation stopped: %s", e)
            self.fault = e
            self.close()
            return
        self._cps_counter += steps

    # ---- timers ----
    def _timer_tick(self, dt):
        self.machine.tick_timers()
        if self.machine.sound_on and not self.sound_playing:
            self._start_beep()
        elif not self.machine.sound_on and self.sound_playing:
            self._stop_beep()

    def _start_beep(self):
        wave = synthesis.Sine(duration=self.config.beep_duration, frequency=self.config.beep_frequency)
        try:
            player = pyglet.media.Player()
            player.queue(wave)
            player.loop = True
            player.play()
        except MediaException as e:
            logger.warning("Sound disabled: %s", e)
            return
        self.beep_player = player
        self.sound_playing = True

    def _stop_beep(self):
        if self.beep_player is not None:
            self.beep_player.pause()
            self.beep_player.delete()
            self.beep_player = None
        self.sound_playing = False

    # FPS / CPS
    def _update_bench(self, dt):
        self.fps_label.text = f"FPS: {self._fps_counter / dt:.1f}"
        self.cps_label.text = f"Cycles/s: {self._cps_counter / dt:.0f}"
        self._fps_counter = 0
        self._cps_counter = 0

    # ---- Drawing ----
    def on_draw(self):
        if self.machine.draw_flag:
            self.image.set_data('RGBA', self.window_width * 4, self._render_bytes())
            self.machine.draw_flag = False

        self.clear()
        self.image.blit(0, 0)
        if self.config.show_stats:
            self.fps_label.draw()
            self.cps_label.draw()
        self._fps_counter += 1

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.close()
        elif symbol == key.F1:
            root = logging.getLogger("chip8")
            root.setLevel(logging.INFO if root.isEnabledFor(logging.DEBUG) else logging.DEBUG)
            logger.info("Debug tracing %s", "on" if root.isEnabledFor(logging.DEBUG) else "off")
        elif symbol in self.keymap:
            self.machine.press_key(self.keymap[symbol])

    def on_key_release(self, symbol, modifiers):
        if symbol in self.keymap:
            self.machine.release_key(self.keymap[symbol])

    def on_close(self):
        self._stop_beep()
        pyglet.clock.unschedule(self._cpu_tick)
        pyglet.clock.unschedule(self._timer_tick)
        pyglet.clock.unschedule(self._update_bench)
        super().on_close()


def run(machine, config, rom_name="CHIP-8"):
    """Open the window and block until it is closed. Returns the fault that
    stopped a strict run, if any."""
    window = Chip8Window(machine, config, rom_name)
    pyglet.app.run()
    return window.fault
