import pytest

from chip8.framebuffer import SCREEN_HEIGHT, SCREEN_WIDTH, FrameBuffer


@pytest.fixture
def screen():
    return FrameBuffer()


def lit(screen):
    return {(x, y)
            for y in range(screen.height)
            for x in range(screen.width)
            if screen.get_pixel(x, y)}


def test_starts_blank(screen):
    assert screen.width == SCREEN_WIDTH == 64
    assert screen.height == SCREEN_HEIGHT == 32
    assert lit(screen) == set()


def test_draw_sets_pixels_msb_first(screen):
    collision = screen.draw_sprite(0, 0, [0b10000001])
    assert not collision
    assert lit(screen) == {(0, 0), (7, 0)}


def test_draw_same_sprite_twice_restores_screen(screen):
    sprite = [0xF0, 0x90, 0x90, 0x90, 0xF0]
    screen.draw_sprite(3, 4, [0x3C])
    before = screen.snapshot()

    assert screen.draw_sprite(10, 12, sprite) is False
    assert screen.draw_sprite(10, 12, sprite) is True
    assert screen.snapshot() == before


def test_collision_only_when_pixel_turned_off(screen):
    screen.draw_sprite(0, 0, [0xF0])
    assert screen.draw_sprite(4, 0, [0xF0]) is False
    assert screen.draw_sprite(3, 0, [0x80]) is True
    assert screen.get_pixel(3, 0) == 0


def test_rows_wrap_horizontally(screen):
    screen.draw_sprite(60, 0, [0xFF])
    assert lit(screen) == {(60, 0), (61, 0), (62, 0), (63, 0),
                           (0, 0), (1, 0), (2, 0), (3, 0)}


def test_rows_clip_at_bottom(screen):
    screen.draw_sprite(0, 30, [0x80, 0x80, 0x80, 0x80])
    assert lit(screen) == {(0, 30), (0, 31)}


def test_start_position_wraps(screen):
    screen.draw_sprite(64 + 2, 32 + 1, [0x80])
    assert lit(screen) == {(2, 1)}


def test_clear(screen):
    screen.draw_sprite(0, 0, [0xFF, 0xFF])
    screen.clear()
    assert lit(screen) == set()


def test_snapshot_is_a_copy(screen):
    snapshot = screen.snapshot()
    screen.draw_sprite(0, 0, [0x80])
    assert snapshot[0][0] == 0
    assert isinstance(snapshot, tuple)
    assert len(snapshot) == 32
    assert len(snapshot[0]) == 64


def test_dirty_flag(screen):
    screen.snapshot(clear_dirty=True)
    assert not screen.dirty
    screen.draw_sprite(0, 0, [0x80])
    assert screen.dirty
    screen.snapshot(clear_dirty=True)
    assert not screen.dirty
    screen.clear()
    assert screen.dirty


def test_render_text():
    screen = FrameBuffer(width=4, height=2)
    screen.draw_sprite(1, 1, [0x80])
    assert screen.render_text() == "....\n.#.."
