import tracemalloc
import unittest

import numpy as np
from PIL import Image, ImageFilter

from invoice_scan.input_handler.quality import ImageQualityAssessor
from tests.fakes import blank_image, striped_image


class ImageQualityTests(unittest.TestCase):
    def setUp(self) -> None:
        self.assessor = ImageQualityAssessor()

    def test_scores_are_bounded(self) -> None:
        rng = np.random.default_rng(7)
        noise = Image.fromarray(rng.integers(0, 256, (120, 160, 3), dtype=np.uint8), 'RGB')

        for image in (noise, striped_image(), blank_image(), Image.new('RGB', (2, 2))):
            metrics = self.assessor.assess(image)
            for value in (metrics.sharpness, metrics.brightness,
                          metrics.contrast, metrics.overall_score):
                self.assertGreaterEqual(value, 0.0)
                self.assertLessEqual(value, 1.0)

    def test_uniform_image_has_no_sharpness_or_contrast(self) -> None:
        metrics = self.assessor.assess(blank_image())
        self.assertEqual(metrics.sharpness, 0.0)
        self.assertAlmostEqual(metrics.contrast, 0.0)
        self.assertAlmostEqual(metrics.brightness, 1.0)
        self.assertAlmostEqual(metrics.overall_score, 0.3)
        self.assertEqual(metrics.resolution, (200, 100))

    def test_high_contrast_stripes_score_well(self) -> None:
        metrics = self.assessor.assess(striped_image())
        self.assertEqual(metrics.sharpness, 1.0)
        self.assertAlmostEqual(metrics.brightness, 0.5)
        self.assertGreater(metrics.overall_score, 0.7)

    def test_blur_lowers_sharpness(self) -> None:
        sharp = striped_image(200, 200)
        blurred = sharp.filter(ImageFilter.GaussianBlur(radius=3))
        self.assertLess(
            self.assessor.assess(blurred).sharpness,
            self.assessor.assess(sharp).sharpness,
        )

    def test_overall_score_is_monotonic(self) -> None:
        base = self.assessor.overall_score(0.3, 0.3, 0.3)
        self.assertGreater(self.assessor.overall_score(0.4, 0.3, 0.3), base)
        self.assertGreater(self.assessor.overall_score(0.3, 0.4, 0.3), base)
        self.assertGreater(self.assessor.overall_score(0.3, 0.3, 0.4), base)

    def test_assess_never_widens_the_whole_image_to_float(self) -> None:
        image = Image.new('RGB', (3000, 2000), (90, 120, 150))
        image.paste((240, 240, 240), (0, 0, 1500, 2000))
        pixels = image.width * image.height

        tracemalloc.start()
        try:
            metrics = self.assessor.assess(image)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        # a float64 plane of the image is 8 bytes per pixel
        self.assertLess(peak, pixels * 8)
        self.assertGreater(metrics.contrast, 0.0)

    def test_brightness_and_contrast_match_pixel_statistics(self) -> None:
        image = Image.new('RGB', (40, 20), (0, 0, 0))
        image.paste((255, 255, 255), (0, 0, 20, 20))

        metrics = self.assessor.assess(image)

        self.assertAlmostEqual(metrics.brightness, 0.5)
        self.assertAlmostEqual(metrics.contrast, 127.5 / 128.0)

    def test_recommendations_for_dark_flat_image(self) -> None:
        metrics = self.assessor.assess(Image.new('RGB', (50, 50), (10, 10, 10)))
        self.assertIn("Image is too dark, improve the lighting", metrics.recommendations)
        self.assertIn("Poor contrast, adjust the lighting angle", metrics.recommendations)


if __name__ == "__main__":
    unittest.main()
