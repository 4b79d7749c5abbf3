"""
Sound - tones synthesized on the fly and played through pygame.mixer.

Every note (palette picks, beat notes, clear/save jingles) is a short
xylophone-like tone rendered once and cached. The brush hum is a sine loop
on a reserved channel whose pitch follows the brush.

If the mixer can't start (no audio device, ALSA trouble), audio is simply
off: every call becomes a no-op.
"""

import logging
import math
import os
from array import array

from .music import midi_to_freq

# Suppress ALSA error/log messages before pygame imports ALSA.
# These corrupt Textual's stderr-based UI. Install null handlers for both paths.
def _suppress_alsa_output():
    try:
        import ctypes
        import ctypes.util

        # Find libasound
        path = ctypes.util.find_library('asound')
        if not path:
            for p in ('libasound.so.2', 'libasound.so'):
                try:
                    path = p
                    ctypes.CDLL(p)
                    break
                except OSError:
                    path = None
        if not path:
            return

        asound = ctypes.CDLL(path)

        # Handler types: error has int err, log has uint level
        HANDLER = ctypes.CFUNCTYPE(None, ctypes.c_char_p, ctypes.c_int,
                                   ctypes.c_char_p, ctypes.c_int, ctypes.c_char_p)
        LOG_HANDLER = ctypes.CFUNCTYPE(None, ctypes.c_char_p, ctypes.c_int,
                                       ctypes.c_char_p, ctypes.c_uint, ctypes.c_char_p)

        noop = lambda *_: None
        err_h, log_h = HANDLER(noop), LOG_HANDLER(noop)
        _suppress_alsa_output._refs = (err_h, log_h)  # prevent GC

        asound.snd_lib_error_set_handler(err_h)
        try:
            asound.snd_lib_log_set_handler(log_h)
        except AttributeError:
            pass
    except Exception:
        pass

_suppress_alsa_output()

# Suppress pygame welcome message (must be set before import)
os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = '1'
import pygame
import pygame.mixer

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
PEAK_LEVEL = 0.75

# Brush hum: pitch changes smaller than this reuse the current loop
BRUSH_PITCH_STEP = 10.0
BRUSH_LOOP_SECONDS = 0.1
BRUSH_CHANNEL = 0


# =============================================================================
# TONE SYNTHESIS
# =============================================================================

def render_tone(frequency: float, duration: float, sample_rate: int = SAMPLE_RATE) -> list[int]:
    """
    Bright, playful tone - like a toy piano or xylophone.
    Punchy attack, clear tone, quick decay. Returns mono int16 samples.
    """
    num_samples = max(1, int(sample_rate * duration))
    fade = min(0.04, duration / 4)
    fade_out_start = duration - fade

    samples = []
    for i in range(num_samples):
        t = i / sample_rate

        # Punchy attack with slight "bonk"
        if t < 0.005:
            attack = (t / 0.005) * 1.3  # overshoot
        elif t < 0.03:
            attack = 1.3 - 0.3 * ((t - 0.005) / 0.025)  # settle
        else:
            attack = 1.0

        # Clear, bright harmonics (xylophone-like)
        sample = math.sin(2 * math.pi * frequency * t)             # fundamental
        sample += 0.5 * math.sin(2 * math.pi * frequency * 2 * t)  # 2nd - body
        sample += 0.25 * math.sin(2 * math.pi * frequency * 4 * t) # 4th - brightness

        sample *= attack * math.exp(-t * 6)

        if t > fade_out_start and fade > 0:
            sample *= max(0.0, 1 - (t - fade_out_start) / fade)

        samples.append(sample)

    return finalize_samples(samples)


def render_sine_loop(frequency: float, sample_rate: int = SAMPLE_RATE,
                     seconds: float = BRUSH_LOOP_SECONDS) -> list[int]:
    """Plain sine holding a whole number of cycles, so it loops without a click."""
    cycles = max(1, round(frequency * seconds))
    num_samples = max(1, round(cycles * sample_rate / frequency))
    samples = [
        math.sin(2 * math.pi * cycles * i / num_samples)
        for i in range(num_samples)
    ]
    return finalize_samples(samples)


def finalize_samples(samples: list[float], peak_level: float = PEAK_LEVEL) -> list[int]:
    """Normalize and convert to int16."""
    peak = max(abs(s) for s in samples) or 1
    return [int(s / peak * peak_level * 32767) for s in samples]


def to_buffer(samples: list[int], channels: int) -> bytes:
    """Interleave mono samples for the mixer's channel count."""
    if channels == 1:
        return array('h', samples).tobytes()
    interleaved = array('h')
    for s in samples:
        interleaved.extend([s] * channels)
    return interleaved.tobytes()


# =============================================================================
# SOUND ENGINE
# =============================================================================

class SoundEngine:
    """pygame.mixer playback of synthesized notes and the brush hum."""

    def __init__(self) -> None:
        self._mixer_initialized = False
        self._sample_rate = SAMPLE_RATE
        self._channels = 2
        # (note, duration) -> Sound
        self._notes: dict[tuple[int, float], pygame.mixer.Sound] = {}
        # quantized pitch -> looping Sound
        self._loops: dict[float, pygame.mixer.Sound] = {}
        self._brush_pitch: float | None = None

    @property
    def available(self) -> bool:
        return self._mixer_initialized

    def init(self) -> bool:
        """Start the mixer. Returns False (audio off) if it can't."""
        if self._mixer_initialized:
            return True
        try:
            # Larger buffer (2048) prevents ALSA underrun errors on slower hardware
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=2, buffer=2048)
            pygame.mixer.set_num_channels(16)
            pygame.mixer.set_reserved(1)  # brush hum channel
            self._sample_rate, _, self._channels = pygame.mixer.get_init()
            self._mixer_initialized = True
            logger.info(f"Audio ready ({self._sample_rate} Hz, {self._channels} ch)")
        except pygame.error as e:
            logger.debug(f"Audio unavailable: {e}")
        return self._mixer_initialized

    def _make_sound(self, samples: list[int]) -> pygame.mixer.Sound:
        return pygame.mixer.Sound(buffer=to_buffer(samples, self._channels))

    def play_note(self, note: int, volume: float, duration: float) -> None:
        """Play a MIDI note once."""
        if not self._mixer_initialized:
            return
        key = (note, duration)
        if key not in self._notes:
            samples = render_tone(midi_to_freq(note), duration, self._sample_rate)
            self._notes[key] = self._make_sound(samples)
        channel = self._notes[key].play()
        if channel is not None:
            channel.set_volume(volume)

    def set_brush_tone(self, frequency: float, amplitude: float) -> None:
        """Keep the brush hum at (roughly) this pitch and level."""
        if not self._mixer_initialized or frequency <= 0:
            return
        pitch = round(frequency / BRUSH_PITCH_STEP) * BRUSH_PITCH_STEP
        channel = pygame.mixer.Channel(BRUSH_CHANNEL)
        if pitch != self._brush_pitch or not channel.get_busy():
            if pitch not in self._loops:
                self._loops[pitch] = self._make_sound(render_sine_loop(pitch, self._sample_rate))
            channel.play(self._loops[pitch], loops=-1)
            self._brush_pitch = pitch
        channel.set_volume(amplitude)

    def cleanup(self) -> None:
        """Stop all sounds and quit mixer."""
        if self._mixer_initialized:
            pygame.mixer.stop()
            pygame.mixer.quit()
            self._mixer_initialized = False
        self._notes.clear()
        self._loops.clear()
        self._brush_pitch = None
