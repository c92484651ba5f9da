"""
Image Quality Assessment Module.

Scores a photographed invoice for sharpness, brightness and contrast.
The overall score drives the preprocessing tier and the recognition
retry ladder. Assessment never fails: degraded input just scores low.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import numpy as np
from PIL import Image, ImageStat

from config import get_config
from invoice_scan.utils.helpers import clamp
from invoice_scan.utils.logger import get_logger

logger = get_logger(__name__)

@dataclass(frozen=True)
class ImageQualityMetrics:
    """
    Quality scores for one image, each in [0, 1].

    Attributes:
        sharpness: Laplacian response spread, normalized.
        brightness: Mean channel intensity over 255.
        contrast: Luminance standard deviation over 128.
        overall_score: Weighted sum of the three, clamped to [0, 1].
        resolution: (width, height) in pixels.
        recommendations: Advisory hints for retaking the photo.
    """
    sharpness: float
    brightness: float
    contrast: float
    overall_score: float
    resolution: Tuple[int, int]
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sharpness': self.sharpness,
            'brightness': self.brightness,
            'contrast': self.contrast,
            'overall_score': self.overall_score,
            'resolution': list(self.resolution),
            'recommendations': list(self.recommendations),
        }


class ImageQualityAssessor:
    """
    Computes ImageQualityMetrics for a raster image.

    Example:
        >>> metrics = ImageQualityAssessor().assess(image)
        >>> metrics.overall_score
        0.62
    """

    def __init__(self) -> None:
        self.sample_span = get_config("quality.sample_span", 500)
        self.sharpness_divisor = get_config("quality.sharpness_divisor", 200.0)
        self.contrast_divisor = get_config("quality.contrast_divisor", 128.0)

        self.sharpness_weight = get_config("quality.weights.sharpness", 0.4)
        self.brightness_weight = get_config("quality.weights.brightness", 0.3)
        self.contrast_weight = get_config("quality.weights.contrast", 0.3)

        self.min_sharpness = get_config("quality.recommendations.min_sharpness", 0.15)
        self.min_brightness = get_config("quality.recommendations.min_brightness", 0.2)
        self.max_brightness = get_config("quality.recommendations.max_brightness", 0.95)
        self.min_contrast = get_config("quality.recommendations.min_contrast", 0.15)

    def assess(self, image: Image.Image) -> ImageQualityMetrics:
        """
        Score an image.

        Args:
            image: Image in any PIL mode; alpha is ignored.

        Returns:
            ImageQualityMetrics for the image.
        """
        rgb = image.convert('RGB')
        gray = rgb.convert('L')

        sharpness = self._sharpness(np.asarray(gray))
        brightness = self._brightness(rgb)
        contrast = self._contrast(gray, brightness)
        overall = self.overall_score(sharpness, brightness, contrast)

        metrics = ImageQualityMetrics(
            sharpness=sharpness,
            brightness=brightness,
            contrast=contrast,
            overall_score=overall,
            resolution=image.size,
            recommendations=self._recommendations(sharpness, brightness, contrast)
        )

        logger.debug(
            f"Image quality {image.width}x{image.height}: sharpness={sharpness:.3f}, "
            f"brightness={brightness:.3f}, contrast={contrast:.3f}, overall={overall:.3f}"
        )
        return metrics

    def overall_score(self, sharpness: float, brightness: float, contrast: float) -> float:
        """Weighted combination of the three sub-scores, clamped to [0, 1]."""
        return clamp(
            self.sharpness_weight * sharpness
            + self.brightness_weight * brightness
            + self.contrast_weight * contrast
        )

    def _sharpness(self, gray: np.ndarray) -> float:
        """
        Spread of 3x3 Laplacian responses on a sampling grid.

        The stride keeps roughly ``sample_span`` samples across the
        shorter side so large photos stay cheap to score. Only the
        sampled neighbourhoods are widened to float.
        """
        height, width = gray.shape
        step = max(1, min(width, height) // self.sample_span)

        ys = np.arange(1, height - 1, step)
        xs = np.arange(1, width - 1, step)
        if ys.size == 0 or xs.size == 0:
            return 0.0

        def sample(rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
            return gray[np.ix_(rows, cols)].astype(np.float64)

        response = sample(ys, xs)
        response *= 4.0
        response -= sample(ys - 1, xs)
        response -= sample(ys + 1, xs)
        response -= sample(ys, xs - 1)
        response -= sample(ys, xs + 1)

        return clamp(float(np.sqrt(response.var())) / self.sharpness_divisor)

    @staticmethod
    def _brightness(rgb: Image.Image) -> float:
        # every pixel, not sampled
        return sum(ImageStat.Stat(rgb).mean[:3]) / 3.0 / 255.0

    def _contrast(self, gray: Image.Image, brightness: float) -> float:
        stat = ImageStat.Stat(gray)
        # spread around the brightness level rather than around the luma mean
        offset = stat.mean[0] - brightness * 255.0
        deviation = np.sqrt(max(stat.var[0], 0.0) + offset ** 2)
        return clamp(float(deviation) / self.contrast_divisor)

    def _recommendations(self, sharpness: float, brightness: float, contrast: float) -> List[str]:
        recommendations = []
        if sharpness < self.min_sharpness:
            recommendations.append("Image is blurry, hold the camera steady")
        if brightness < self.min_brightness:
            recommendations.append("Image is too dark, improve the lighting")
        if brightness > self.max_brightness:
            recommendations.append("Image is too bright, reduce the lighting")
        if contrast < self.min_contrast:
            recommendations.append("Poor contrast, adjust the lighting angle")
        return recommendations
