# The width of the screen in pixels.
SCREEN_WIDTH = 64

# The height of the screen in pixels.
SCREEN_HEIGHT = 32

# Every sprite row is one byte wide
SPRITE_WIDTH = 8


class FrameBuffer(object):
    """
    The monochrome Chip 8 display. The original Chip 8 screen was 64 x 32
    with 2 colors: 0 (off) and 1 (on). Pixels only change through clear()
    and the XOR sprite routine in draw_sprite().

    The renderer reads the buffer through snapshot() and can use the dirty
    flag to skip frames where nothing was drawn.
    """
    def __init__(self, width=SCREEN_WIDTH, height=SCREEN_HEIGHT):
        self.width = width
        self.height = height
        self.pixels = [[0] * width for _ in range(height)]
        self.dirty = True

    def get_pixel(self, x_pos, y_pos):
        """
        Returns whether the pixel is on (1) or off (0) at the specified
        location. The coordinate system starts with (0, 0) being in the top
        left of the screen.

        :param x_pos: the x coordinate to check
        :param y_pos: the y coordinate to check
        :return: the color of the specified pixel (0 or 1)
        """
        return self.pixels[y_pos][x_pos]

    def clear(self):
        """
        Turns off all the pixels on the screen.
        """
        for row in self.pixels:
            row[:] = [0] * self.width
        self.dirty = True

    def draw_sprite(self, x_pos, y_pos, rows):
        """
        XOR a sprite onto the screen. Each entry of rows is one byte; its
        most significant bit is the leftmost pixel. The start position wraps
        around the screen. Within a row, pixels running off the right edge
        wrap to the left edge; rows running off the bottom edge are clipped.

        :param x_pos: the X position of the sprite
        :param y_pos: the Y position of the sprite
        :param rows: the sprite bytes, top row first
        :return: True if any pixel that was on was turned off
        """
        x_pos %= self.width
        y_pos %= self.height
        collision = False

        for y_index, sprite_byte in enumerate(rows):
            y_coord = y_pos + y_index
            if y_coord >= self.height:
                break
            screen_row = self.pixels[y_coord]

            for x_index in range(SPRITE_WIDTH):
                if not (sprite_byte >> (7 - x_index)) & 0x1:
                    continue
                x_coord = (x_pos + x_index) % self.width
                if screen_row[x_coord]:
                    collision = True
                screen_row[x_coord] ^= 1

        self.dirty = True
        return collision

    def snapshot(self, clear_dirty=False):
        """
        Returns a read-only copy of the screen as a tuple of rows.

        :param clear_dirty: mark the buffer as rendered
        :return: a tuple of `height` tuples of `width` pixels
        """
        if clear_dirty:
            self.dirty = False
        return tuple(tuple(row) for row in self.pixels)

    def render_text(self, on='#', off='.'):
        return '\n'.join(
            ''.join(on if pixel else off for pixel in row)
            for row in self.pixels)
