import unittest

from PIL import Image

from invoice_scan.input_handler.image_processor import (
    AdaptivePreprocessor,
    ImagePreprocessingOptions,
    PreprocessingStrategy,
    otsu_threshold,
)
from invoice_scan.input_handler.quality import ImageQualityMetrics
from tests.fakes import striped_image


def metrics_with_score(score: float, size=(100, 100)) -> ImageQualityMetrics:
    return ImageQualityMetrics(
        sharpness=score,
        brightness=score,
        contrast=score,
        overall_score=score,
        resolution=size,
    )


class StrategySelectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.preprocessor = AdaptivePreprocessor()

    def test_tier_boundaries(self) -> None:
        cases = [
            (0.85, PreprocessingStrategy.ORIGINAL),
            (0.71, PreprocessingStrategy.ORIGINAL),
            (0.7, PreprocessingStrategy.RESIZE_ONLY),
            (0.51, PreprocessingStrategy.RESIZE_ONLY),
            (0.5, PreprocessingStrategy.GRAYSCALE),
            (0.41, PreprocessingStrategy.GRAYSCALE),
            (0.4, PreprocessingStrategy.ENHANCE),
            (0.0, PreprocessingStrategy.ENHANCE),
        ]
        for score, expected in cases:
            with self.subTest(score=score):
                self.assertIs(self.preprocessor.select_strategy(metrics_with_score(score)), expected)


class PreprocessTests(unittest.TestCase):
    def setUp(self) -> None:
        self.preprocessor = AdaptivePreprocessor()

    def test_high_quality_image_is_untouched(self) -> None:
        image = striped_image()
        before = image.tobytes()

        processed = self.preprocessor.preprocess(image, metrics_with_score(0.85))

        self.assertIs(processed, image)
        self.assertEqual(processed.tobytes(), before)

    def test_resize_tier_keeps_small_images(self) -> None:
        image = Image.new('RGB', (3000, 1200), 'white')
        processed = self.preprocessor.preprocess(image, metrics_with_score(0.6))
        self.assertEqual(processed.size, (3000, 1200))

    def test_resize_tier_downscales_large_images(self) -> None:
        image = Image.new('RGB', (6000, 300), 'white')
        processed = self.preprocessor.preprocess(image, metrics_with_score(0.6))
        self.assertEqual(processed.size, (3000, 150))
        self.assertEqual(image.size, (6000, 300))

    def test_grayscale_tier(self) -> None:
        image = Image.new('RGB', (20, 20), (200, 30, 30))
        processed = self.preprocessor.preprocess(image, metrics_with_score(0.45))

        self.assertEqual(processed.mode, 'RGB')
        r, g, b = processed.getpixel((5, 5))
        self.assertEqual(r, g)
        self.assertEqual(g, b)
        self.assertEqual(image.getpixel((5, 5)), (200, 30, 30))

    def test_enhance_tier_returns_new_image(self) -> None:
        image = Image.new('RGB', (40, 40), (100, 100, 100))
        processed = self.preprocessor.preprocess(image, metrics_with_score(0.2))

        self.assertIsNot(processed, image)
        self.assertEqual(processed.size, (40, 40))
        self.assertEqual(image.getpixel((0, 0)), (100, 100, 100))
        # contrast gain of 1.1 on a flat image
        self.assertEqual(processed.getpixel((20, 20)), (110, 110, 110))


class HardCapTests(unittest.TestCase):
    def setUp(self) -> None:
        self.preprocessor = AdaptivePreprocessor()

    def test_images_within_cap_are_unchanged(self) -> None:
        image = Image.new('RGB', (4096, 100))
        self.assertIs(self.preprocessor.apply_hard_cap(image), image)

    def test_minor_overshoot_is_not_resized(self) -> None:
        image = Image.new('RGB', (5000, 100))
        self.assertIs(self.preprocessor.apply_hard_cap(image), image)

    def test_large_overshoot_is_capped(self) -> None:
        image = Image.new('RGB', (8192, 1024))
        capped = self.preprocessor.apply_hard_cap(image)
        self.assertEqual(capped.size, (4096, 512))


class EnhancementStepTests(unittest.TestCase):
    def test_adjust_contrast_clamps(self) -> None:
        image = Image.new('RGB', (4, 4), (250, 10, 100))
        adjusted = AdaptivePreprocessor.adjust_contrast(image, 1.1)
        self.assertEqual(adjusted.getpixel((0, 0)), (255, 11, 110))

    def test_adjust_contrast_offset_clamps_at_zero(self) -> None:
        image = Image.new('L', (4, 4), 20)
        adjusted = AdaptivePreprocessor.adjust_contrast(image, 1.0, -30)
        self.assertEqual(adjusted.mode, 'RGB')
        self.assertEqual(adjusted.getpixel((1, 1)), (0, 0, 0))

    def test_sharpen_leaves_flat_regions_alone(self) -> None:
        image = Image.new('RGB', (10, 10), (80, 80, 80))
        self.assertEqual(
            AdaptivePreprocessor.sharpen(image).getpixel((5, 5)),
            (80, 80, 80),
        )

    def test_binarize_produces_black_and_white(self) -> None:
        image = Image.new('RGB', (20, 20), (40, 40, 40))
        image.paste((220, 220, 220), (0, 0, 10, 20))

        binary = AdaptivePreprocessor.binarize(image)

        colors = {color for _, color in binary.getcolors()}
        self.assertEqual(colors, {(0, 0, 0), (255, 255, 255)})
        self.assertEqual(binary.getpixel((2, 2)), (255, 255, 255))
        self.assertEqual(binary.getpixel((15, 2)), (0, 0, 0))

    def test_deskew_skips_images_without_text(self) -> None:
        image = Image.new('RGB', (50, 50), 'white')
        self.assertIs(AdaptivePreprocessor.deskew(image, 12.0), image)

    def test_options_disable_steps(self) -> None:
        options = ImagePreprocessingOptions(
            enable_contrast_enhancement=False,
            enable_sharpening=False,
        )
        image = Image.new('RGB', (10, 10), (100, 100, 100))
        processed = AdaptivePreprocessor(options).enhance(image)
        self.assertEqual(processed.getpixel((5, 5)), (100, 100, 100))


class OtsuThresholdTests(unittest.TestCase):
    def test_bimodal_histogram_splits_between_modes(self) -> None:
        histogram = [0] * 256
        histogram[50] = 1000
        histogram[200] = 1000

        threshold = otsu_threshold(histogram)

        self.assertGreater(threshold, 50)
        self.assertLess(threshold, 200)

    def test_spread_clusters(self) -> None:
        histogram = [0] * 256
        for level in range(30, 61):
            histogram[level] = 10
        for level in range(180, 221):
            histogram[level] = 15

        threshold = otsu_threshold(histogram)

        self.assertGreater(threshold, 60)
        self.assertLess(threshold, 180)

    def test_empty_bins_between_spikes_give_plateau_midpoint(self) -> None:
        histogram = [0] * 256
        histogram[50] = 1000
        histogram[200] = 1000

        # the variance is flat for t in 50..199
        self.assertEqual(otsu_threshold(histogram), 124)

    def test_single_level_histogram(self) -> None:
        histogram = [0] * 256
        histogram[128] = 500
        self.assertEqual(otsu_threshold(histogram), 0)


if __name__ == "__main__":
    unittest.main()
