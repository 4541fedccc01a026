"""Tests for display operations (00E0, DXYN)."""

import jax.numpy as jnp
import pytest
from chipvm import execute, acknowledge_redraw
from conftest import setup_sprite_in_memory


class TestBasicSprites:
    """Test basic sprite drawing."""

    def test_basic_sprite_draw(self, fresh_state):
        """Test basic sprite drawing without collision."""
        state = fresh_state

        # Simple 2x2 box sprite
        sprite = [0xC0, 0xC0]  # 11000000, 11000000
        state = setup_sprite_in_memory(state, 0x300, sprite)

        state = execute(state, 0x600A)  # V0 = 10
        state = execute(state, 0x6105)  # V1 = 5
        state = execute(state, 0xA300)  # I = 0x300
        pc_before_draw = state.pc

        state = execute(state, 0xD012)

        assert state.display[10, 5] == 1  # Top-left
        assert state.display[11, 5] == 1  # Top-right
        assert state.display[10, 6] == 1  # Bottom-left
        assert state.display[11, 6] == 1  # Bottom-right
        assert state.display[12, 5] == 0  # Outside sprite
        assert jnp.sum(state.display) == 4

        assert state.V[15] == 0
        assert state.pc == pc_before_draw + 2

    def test_collision_detection(self, fresh_state):
        """Drawing 0xFF twice erases it and reports a collision only the second time."""
        state = setup_sprite_in_memory(fresh_state, 0x400, [0xFF])

        state = execute(state, 0x6014)  # V0 = 20
        state = execute(state, 0x610A)  # V1 = 10
        state = execute(state, 0xA400)  # I = 0x400

        state = execute(state, 0xD011)
        assert jnp.sum(state.display[20:28, 10]) == 8
        assert state.V[15] == 0

        state = execute(state, 0xD011)
        assert jnp.sum(state.display) == 0
        assert state.V[15] == 1

    def test_partial_overlap_collision(self, fresh_state):
        """A single overlapping pixel is enough for VF = 1."""
        state = setup_sprite_in_memory(fresh_state, 0x500, [0xF0, 0x80])

        state = execute(state, 0x6008)  # V0 = 8
        state = execute(state, 0x610F)  # V1 = 15
        state = execute(state, 0xA500)  # I = 0x500
        state = execute(state, 0xD011)  # Top row only: 4 pixels at y=15

        state = execute(state, 0xA501)  # I = 0x501, single pixel 0x80
        state = execute(state, 0xD011)  # pixel at (8, 15), already lit

        assert state.V[15] == 1
        assert state.display[8, 15] == 0
        assert state.display[9, 15] == 1

    def test_zero_height_draws_nothing(self, fresh_state):
        """DXY0 leaves the display alone and clears VF."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0xFF])
        state = state.replace(V=state.V.at[15].set(1))
        state = execute(state, 0xA300)

        state = execute(state, 0xD010)

        assert jnp.sum(state.display) == 0
        assert state.V[15] == 0


class TestScreenWrapping:
    """Test sprite wraparound at the screen edges."""

    def test_right_edge_wraps(self, fresh_state):
        """Columns past x=63 continue at x=0."""
        state = setup_sprite_in_memory(fresh_state, 0x600, [0xFF])

        state = execute(state, 0x603C)  # V0 = 60
        state = execute(state, 0x6100)  # V1 = 0
        state = execute(state, 0xA600)  # I = 0x600

        state = execute(state, 0xD011)

        for x in (60, 61, 62, 63, 0, 1, 2, 3):
            assert state.display[x, 0] == 1, f"pixel {x} not drawn"
        assert state.display[4, 0] == 0
        assert state.display[59, 0] == 0

    def test_bottom_edge_wraps(self, fresh_state):
        """Rows past y=31 continue at y=0."""
        state = setup_sprite_in_memory(fresh_state, 0x700, [0x80, 0x80, 0x80])

        state = execute(state, 0x6000)  # V0 = 0
        state = execute(state, 0x611E)  # V1 = 30
        state = execute(state, 0xA700)  # I = 0x700

        state = execute(state, 0xD013)

        assert state.display[0, 30] == 1
        assert state.display[0, 31] == 1
        assert state.display[0, 0] == 1

    def test_corner_wraps_both_ways(self, fresh_state):
        """An 8x2 sprite at (63, 31) wraps to column 0 and row 0."""
        state = setup_sprite_in_memory(fresh_state, 0x800, [0xFF, 0xFF])

        state = execute(state, 0x603F)  # V0 = 63
        state = execute(state, 0x611F)  # V1 = 31
        state = execute(state, 0xA800)

        state = execute(state, 0xD012)

        assert state.display[63, 31] == 1
        assert state.display[0, 31] == 1  # column overflow
        assert state.display[6, 31] == 1
        assert state.display[63, 0] == 1  # row overflow
        assert state.display[0, 0] == 1  # both
        assert state.display[7, 0] == 0
        assert jnp.sum(state.display) == 16

    def test_coordinate_wrapping(self, fresh_state):
        """Coordinates beyond the screen are taken modulo its size."""
        state = setup_sprite_in_memory(fresh_state, 0x900, [0x80])

        state = execute(state, 0x6046)  # V0 = 70 (70 % 64 = 6)
        state = execute(state, 0x6125)  # V1 = 37 (37 % 32 = 5)
        state = execute(state, 0xA900)

        state = execute(state, 0xD011)

        assert state.display[6, 5] == 1


class TestSpriteVariations:
    """Test different sprite configurations."""

    def test_different_sprite_heights(self, fresh_state):
        """Test sprites with different N values."""
        sprite = [0x80, 0x40, 0x20, 0x10, 0x08]  # Diagonal line
        state = setup_sprite_in_memory(fresh_state, 0x900, sprite)

        state = execute(state, 0x600A)  # V0 = 10
        state = execute(state, 0x6108)  # V1 = 8
        state = execute(state, 0xA900)

        state = execute(state, 0xD013)  # First 3 rows only

        assert state.display[10, 8] == 1
        assert state.display[11, 9] == 1
        assert state.display[12, 10] == 1
        assert state.display[13, 11] == 0

    def test_short_sprite_keeps_full_width(self, fresh_state):
        """A 1-row sprite still draws all 8 columns."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0x81])
        state = execute(state, 0xA300)

        state = execute(state, 0xD011)

        assert state.display[0, 0] == 1
        assert state.display[7, 0] == 1

    def test_font_glyph(self, fresh_state):
        """The built-in glyph for 0 is a 4x5 ring."""
        state = execute(fresh_state, 0xF029)  # I = glyph of V0 = 0
        state = execute(state, 0xD015)

        assert jnp.sum(state.display) == 14
        assert state.display[1, 2] == 0

    def test_vf_register_cleared(self, fresh_state):
        """VF is cleared when no pixel collides."""
        state = setup_sprite_in_memory(fresh_state, 0xB00, [0x80])

        state = execute(state, 0x6F01)  # VF = 1
        state = execute(state, 0x6005)
        state = execute(state, 0x6105)
        state = execute(state, 0xAB00)
        state = execute(state, 0xD011)

        assert state.V[15] == 0


class TestRedrawFlag:
    """Test redraw signalling."""

    def test_draw_marks_redraw(self, fresh_state):
        state = acknowledge_redraw(fresh_state)
        assert not state.draw_flag

        state = execute(state, 0xD011)
        assert state.draw_flag

    def test_clear_screen_marks_redraw(self, fresh_state):
        state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(1))
        state = acknowledge_redraw(state)

        state = execute(state, 0x00E0)

        assert jnp.sum(state.display) == 0
        assert state.draw_flag
        assert state.pc == fresh_state.pc + 2
