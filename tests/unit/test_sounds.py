"""Sound trigger tests"""
from classes import EventType, GameEvent
from sounds import SoundPlayer


class FakeSound:
    def __init__(self):
        self.plays = 0

    def play(self):
        self.plays += 1


def player_with_fakes():
    player = SoundPlayer(enabled=False)
    player.enabled = True
    player.sounds = {"flip": FakeSound(), "match": FakeSound(), "error": FakeSound()}
    return player


class TestSoundPlayer:
    """SoundPlayer tests"""

    def test_disabled_player_loads_nothing(self):
        player = SoundPlayer(enabled=False)
        assert player.sounds == {}
        assert not player.mixer_ready
        player.play("flip")
        player.release()

    def test_events_map_to_sounds(self):
        player = player_with_fakes()
        player.handle_event(GameEvent(EventType.FLIP))
        player.handle_event(GameEvent(EventType.FLIP))
        player.handle_event(GameEvent(EventType.MATCH))
        player.handle_event(GameEvent(EventType.MISMATCH))

        assert player.sounds["flip"].plays == 2
        assert player.sounds["match"].plays == 1
        assert player.sounds["error"].plays == 1

    def test_other_events_are_silent(self):
        player = player_with_fakes()
        player.handle_event(GameEvent(EventType.STATE_CHANGED))
        player.handle_event(GameEvent(EventType.GAME_WON))
        assert all(sound.plays == 0 for sound in player.sounds.values())

    def test_release_clears_sounds(self):
        player = player_with_fakes()
        player.release()
        assert player.sounds == {}
