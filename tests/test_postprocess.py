import numpy as np

from creeper.composite.postprocess import (
    PostProcessor,
    apply_tint,
    draw_watermark,
    to_grayscale,
)
from creeper.composite.text import TextStyle
from creeper.config import CanvasSettings


class TestGrayscale:
    def test_channels_equal_after_grayscale(self):
        rng = np.random.default_rng(7)
        canvas = rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)

        to_grayscale(canvas)

        assert np.array_equal(canvas[..., 0], canvas[..., 1])
        assert np.array_equal(canvas[..., 1], canvas[..., 2])

    def test_luma_weights(self):
        canvas = np.zeros((1, 3, 3), dtype=np.uint8)
        canvas[0, 0] = (0, 0, 255)  # red
        canvas[0, 1] = (0, 255, 0)  # green
        canvas[0, 2] = (255, 0, 0)  # blue

        to_grayscale(canvas)

        assert canvas[0, :, 0].tolist() == [76, 150, 29]


class TestTint:
    def test_alpha_blend(self):
        canvas = np.full((4, 4, 3), 100, dtype=np.uint8)

        apply_tint(canvas, (0, 255, 0), 0.2)

        assert canvas[0, 0].tolist() == [80, 131, 80]

    def test_zero_opacity_is_noop(self):
        canvas = np.full((4, 4, 3), 100, dtype=np.uint8)
        apply_tint(canvas, (0, 255, 0), 0.0)
        assert np.all(canvas == 100)


class TestWatermark:
    def test_caption_centered_on_canvas(self):
        canvas = np.zeros((512, 512, 3), dtype=np.uint8)

        draw_watermark(canvas, "CREEPER", TextStyle(48, (0, 255, 0)))

        ys, xs = np.nonzero(canvas[..., 1])
        assert len(xs) > 0
        assert abs((xs.min() + xs.max()) / 2 - 256) <= 8
        assert abs((ys.min() + ys.max()) / 2 - 256) <= 8

    def test_empty_caption_draws_nothing(self):
        canvas = np.zeros((64, 64, 3), dtype=np.uint8)
        draw_watermark(canvas, "", TextStyle(12, (0, 255, 0)))
        assert not canvas.any()


class TestPostProcessor:
    def test_order_grayscale_then_tint_then_watermark(self):
        settings = CanvasSettings(size=256, border=8, watermark_font_px=12, tint_opacity=0.1)
        canvas = np.zeros((256, 256, 3), dtype=np.uint8)
        canvas[:] = (0, 0, 255)

        PostProcessor(settings).process(canvas)

        # Corner: red -> luma 76 -> tinted green
        b, g, r = canvas[0, 0].tolist()
        assert b == r == 68
        assert g == 94
        # Watermark is blended over the tinted result, pulling blue down
        center = canvas[112:144, 80:176].astype(int)
        assert ((center[..., 0] < 60) & (center[..., 1] > 94)).any()
