# The number of keys on the Chip 8 hex keypad
NUM_KEYS = 0x10


class Keypad(object):
    """
    The state of the 16 key hex keypad. The host delivers key down and key up
    events; the CPU only asks which keys are currently held.

    The original layout is:

        1 2 3 C
        4 5 6 D
        7 8 9 E
        A 0 B F
    """
    def __init__(self):
        self.keys = [False] * NUM_KEYS

    @staticmethod
    def _check_key(key):
        if not 0 <= key < NUM_KEYS:
            raise ValueError("Invalid key: {!r}".format(key))

    def key_down(self, key):
        self._check_key(key)
        self.keys[key] = True

    def key_up(self, key):
        self._check_key(key)
        self.keys[key] = False

    def is_pressed(self, key):
        self._check_key(key)
        return self.keys[key]

    def pressed_keys(self):
        """
        :return: the keys currently held, lowest first
        """
        return [key for key in range(NUM_KEYS) if self.keys[key]]

    def release_all(self):
        self.keys = [False] * NUM_KEYS
