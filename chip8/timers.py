# The rate at which the delay and sound timers count down
TIMER_HZ = 60


class Timers(object):
    """
    The two Chip 8 timers. Both are loaded with a value and then decremented
    60 times per second until they reach zero. The delay timer is read back
    by programs, the sound timer only tells the host when to beep.
    """
    def __init__(self):
        self._delay = 0
        self._sound = 0

    @staticmethod
    def _clamp(value):
        return max(0, min(0xFF, int(value)))

    @property
    def delay(self):
        return self._delay

    @delay.setter
    def delay(self, value):
        self._delay = self._clamp(value)

    @property
    def sound(self):
        return self._sound

    @sound.setter
    def sound(self, value):
        self._sound = self._clamp(value)

    @property
    def sound_active(self):
        """
        True while the sound timer is counting down.
        """
        return self._sound != 0

    def tick(self):
        """
        Decrement both the sound and delay timer.
        """
        if self._delay != 0:
            self._delay -= 1

        if self._sound != 0:
            self._sound -= 1

    def reset(self):
        self._delay = 0
        self._sound = 0
