from pygame import display, HWSURFACE, DOUBLEBUF, Color, draw

from .framebuffer import SCREEN_HEIGHT, SCREEN_WIDTH

SCREEN_NAME = 'CHIP8 Interpreter'

# The depth of the screen is the number of bits used to represent the color
# of a pixel.
SCREEN_DEPTH = 8

# The colors of the pixels to draw. The Chip 8 supports two colors: 0 (off)
# and 1 (on). The format of the colors is in RGBA format.
PIXEL_COLORS = {
    0: Color(0, 0, 0, 255),
    1: Color(250, 250, 250, 255)
}


class Screen(object):
    """
    A pygame window that shows the contents of a FrameBuffer. The original
    Chip 8 resolution of 64 x 32 is quite small, so every Chip 8 pixel is
    drawn as a square of `ratio` x `ratio` window pixels.
    """
    def __init__(self, ratio, screen_height=SCREEN_HEIGHT, screen_width=SCREEN_WIDTH):
        """
        :param ratio: the scaling factor to apply to the screen
        :param screen_height: the height of the frame buffer
        :param screen_width: the width of the frame buffer
        """
        self.screen_height = screen_height
        self.screen_width = screen_width
        self.scaling_ratio = ratio
        self.screen_surface = None

    def init_display(self):
        """
        Attempts to initialize a screen with the specified height and width.
        The screen will by default be of depth SCREEN_DEPTH, and will be
        double-buffered in hardware (if possible).
        """
        display.init()
        self.screen_surface = display.set_mode(
            ((self.screen_width * self.scaling_ratio),
             (self.screen_height * self.scaling_ratio)),
            HWSURFACE | DOUBLEBUF,
            SCREEN_DEPTH)
        display.set_caption(SCREEN_NAME)
        self.screen_surface.fill(PIXEL_COLORS[0])
        display.flip()

    def set_caption(self, text):
        display.set_caption('{} - {}'.format(SCREEN_NAME, text))

    def draw_screen_pixel(self, x_axis_position, y_axis_position, pixel_color):
        """
        Paint one Chip 8 pixel. Nothing is shown until update_screen() flips
        the drawing buffer to the display. The coordinate system starts with
        (0, 0) being in the top left of the screen.

        :param x_axis_position: the x coordinate to place the pixel
        :param y_axis_position: the y coordinate to place the pixel
        :param pixel_color: the color of the pixel to draw
        """
        x_axis_base_position = x_axis_position * self.scaling_ratio
        y_axis_base_position = y_axis_position * self.scaling_ratio
        draw.rect(self.screen_surface,
                  PIXEL_COLORS[pixel_color],
                  (x_axis_base_position, y_axis_base_position,
                   self.scaling_ratio, self.scaling_ratio))

    def render(self, frame_buffer):
        """
        Repaint the window from the frame buffer if anything was drawn since
        the last frame.

        :param frame_buffer: the FrameBuffer to show
        :return: True if the window was repainted
        """
        if not frame_buffer.dirty:
            return False
        self.screen_surface.fill(PIXEL_COLORS[0])
        for y_axis_position, row in enumerate(frame_buffer.snapshot(clear_dirty=True)):
            for x_axis_position, pixel_color in enumerate(row):
                if pixel_color:
                    self.draw_screen_pixel(x_axis_position, y_axis_position, 1)
        self.update_screen()
        return True

    @staticmethod
    def update_screen():
        """
        Updates the display by swapping the back buffer and screen buffer.
        According to the pygame documentation, the flip should wait for a
        vertical retrace when both HWSURFACE and DOUBLEBUF are set on the
        surface.
        """
        display.flip()

    @staticmethod
    def close():
        display.quit()
