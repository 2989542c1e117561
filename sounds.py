"""
Sound effects for card flips, matches and mismatches.

Playback is fire-and-forget. A machine without audio, or a missing sound file,
just means silence.
"""
import logging
import os

import pygame

from classes import EventType, GameEvent

logger = logging.getLogger(__name__)

SOUND_FILES = {
    "flip": "flip.wav",
    "match": "match.wav",
    "error": "error.wav",
}

EVENT_SOUNDS = {
    EventType.FLIP: "flip",
    EventType.MATCH: "match",
    EventType.MISMATCH: "error",
}


class SoundPlayer:
    """Loads the game's sounds into pygame.mixer and plays them by name."""

    def __init__(self, sound_dir="sounds", enabled=True):
        self.sounds = {}
        self.enabled = enabled
        self.mixer_ready = False
        if not enabled:
            return

        try:
            pygame.mixer.init()
            self.mixer_ready = True
        except pygame.error as e:
            logger.warning(f"Audio disabled, mixer unavailable: {e}")
            return

        for name, filename in SOUND_FILES.items():
            path = os.path.join(sound_dir, filename)
            if not os.path.exists(path):
                continue
            try:
                self.sounds[name] = pygame.mixer.Sound(path)
            except pygame.error as e:
                logger.warning(f"Could not load sound {path}: {e}")

    def play(self, name):
        sound = self.sounds.get(name)
        if self.enabled and sound is not None:
            sound.play()

    def handle_event(self, event: GameEvent):
        """Play the sound that belongs to an engine event, if any."""
        name = EVENT_SOUNDS.get(event.type)
        if name:
            self.play(name)

    def release(self):
        """Free the loaded sounds and shut the mixer down."""
        self.sounds.clear()
        if self.mixer_ready:
            pygame.mixer.quit()
            self.mixer_ready = False
