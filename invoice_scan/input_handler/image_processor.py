"""
Adaptive Image Preprocessing Module.

Chooses how much to touch an image before recognition based on its
quality score. Enhancement can degrade sharp photos from modern phone
cameras, so each tier does strictly less than an "always enhance"
policy would:

    score > 0.7        original, untouched
    0.5 < score <= 0.7 downscale only when larger than 3000px
    0.4 < score <= 0.5 grayscale only
    score <= 0.4       enhancement chain (cap size, contrast, sharpen;
                       denoise/binarize/deskew optional)

Every operation returns a new image; inputs are never modified.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import cv2
import numpy as np
from PIL import Image, ImageFilter, ImageOps

from config import get_config
from invoice_scan.utils.logger import get_logger
from .quality import ImageQualityMetrics

logger = get_logger(__name__)

SHARPEN_KERNEL = (
    0, -1, 0,
    -1, 5, -1,
    0, -1, 0,
)


class PreprocessingStrategy(Enum):
    """Preprocessing tier selected from the quality score."""
    ORIGINAL = "original"
    RESIZE_ONLY = "resize_only"
    GRAYSCALE = "grayscale"
    ENHANCE = "enhance"


@dataclass(frozen=True)
class ImagePreprocessingOptions:
    """Toggles for the low-quality enhancement chain."""
    enable_noise_reduction: bool = False
    enable_contrast_enhancement: bool = True
    enable_sharpening: bool = True
    enable_binarization: bool = False
    enable_deskewing: bool = False

    @classmethod
    def from_settings(cls) -> 'ImagePreprocessingOptions':
        return cls(
            enable_noise_reduction=get_config("preprocessing.enhancement.denoise", False),
            enable_contrast_enhancement=get_config("preprocessing.enhancement.contrast", True),
            enable_sharpening=get_config("preprocessing.enhancement.sharpen", True),
            enable_binarization=get_config("preprocessing.enhancement.binarize", False),
            enable_deskewing=get_config("preprocessing.enhancement.deskew", False),
        )


def otsu_threshold(histogram: Sequence[int]) -> int:
    """
    Otsu's threshold for a 256-bin gray-level histogram.

    Picks the level t maximising the between-class variance
    wB * wF * (mB - mF)^2, where pixels <= t form the background class.
    Empty bins between two clusters leave the variance flat; the middle
    of the first contiguous run of maxima is returned.

    Args:
        histogram: Pixel counts per gray level 0..255.

    Returns:
        Threshold level; pixels above it are foreground (white).
    """
    hist = np.asarray(histogram, dtype=np.float64)
    levels = np.arange(hist.size, dtype=np.float64)

    total = hist.sum()
    weighted_total = (levels * hist).sum()

    w_b = 0.0
    sum_b = 0.0
    best_variance = 0.0
    run_start = run_end = 0
    in_run = False

    for t in range(hist.size):
        w_b += hist[t]
        if w_b == 0:
            continue

        w_f = total - w_b
        if w_f == 0:
            break

        sum_b += t * hist[t]
        m_b = sum_b / w_b
        m_f = (weighted_total - sum_b) / w_f

        variance = w_b * w_f * (m_b - m_f) ** 2
        if variance > best_variance:
            best_variance = variance
            run_start = run_end = t
            in_run = True
        elif in_run and variance == best_variance:
            run_end = t
        else:
            in_run = False

    return (run_start + run_end) // 2


class AdaptivePreprocessor:
    """
    Quality-tiered preprocessing for invoice photos.

    Example:
        >>> preprocessor = AdaptivePreprocessor()
        >>> processed = preprocessor.preprocess(image, metrics)
    """

    def __init__(self, options: Optional[ImagePreprocessingOptions] = None) -> None:
        self.options = options or ImagePreprocessingOptions.from_settings()

        self.original_above = get_config("preprocessing.tiers.original_above", 0.7)
        self.resize_above = get_config("preprocessing.tiers.resize_above", 0.5)
        self.grayscale_above = get_config("preprocessing.tiers.grayscale_above", 0.4)

        self.resize_max_dimension = get_config("preprocessing.resize_max_dimension", 3000)
        self.hard_cap_dimension = get_config("preprocessing.hard_cap_dimension", 4096)
        self.hard_cap_min_scale = get_config("preprocessing.hard_cap_min_scale", 0.75)

        self.contrast_factor = get_config("preprocessing.contrast_factor", 1.1)
        self.brightness_offset = get_config("preprocessing.brightness_offset", 0)
        self.denoise_radius = get_config("preprocessing.denoise_radius", 1.0)
        self.max_deskew_angle = get_config("preprocessing.max_deskew_angle", 12.0)

    def select_strategy(self, metrics: ImageQualityMetrics) -> PreprocessingStrategy:
        """Map a quality score onto its preprocessing tier."""
        score = metrics.overall_score
        if score > self.original_above:
            return PreprocessingStrategy.ORIGINAL
        if score > self.resize_above:
            return PreprocessingStrategy.RESIZE_ONLY
        if score > self.grayscale_above:
            return PreprocessingStrategy.GRAYSCALE
        return PreprocessingStrategy.ENHANCE

    def preprocess(self, image: Image.Image, metrics: ImageQualityMetrics) -> Image.Image:
        """
        Prepare an image for recognition.

        Args:
            image: Original image.
            metrics: Quality metrics of ``image``.

        Returns:
            The image to recognize. For the ORIGINAL tier (and for the
            RESIZE_ONLY tier on small images) this is ``image`` itself.
        """
        strategy = self.select_strategy(metrics)
        logger.debug(
            f"Quality {metrics.overall_score:.3f} -> preprocessing strategy {strategy.value}"
        )

        if strategy is PreprocessingStrategy.ORIGINAL:
            return image
        if strategy is PreprocessingStrategy.RESIZE_ONLY:
            return self.resize_to_max_dimension(image, self.resize_max_dimension)
        if strategy is PreprocessingStrategy.GRAYSCALE:
            return self.to_grayscale(image)
        return self.enhance(image)

    def enhance(self, image: Image.Image) -> Image.Image:
        """
        Run the enhancement chain used for low-quality photos.

        Steps:
            1. Cap oversized images at 4096x4096 (only for big reductions)
            2. Noise reduction (optional)
            3. Contrast gain
            4. Sharpening
            5. Binarization (optional)
            6. Deskewing (optional)
        """
        options = self.options
        processed = self.apply_hard_cap(image.convert('RGB'))

        if options.enable_noise_reduction:
            processed = processed.filter(ImageFilter.GaussianBlur(radius=self.denoise_radius))
            logger.debug("Applied noise reduction")

        if options.enable_contrast_enhancement:
            processed = self.adjust_contrast(processed, self.contrast_factor, self.brightness_offset)
            logger.debug(f"Applied contrast gain x{self.contrast_factor}")

        if options.enable_sharpening:
            processed = self.sharpen(processed)
            logger.debug("Applied sharpening")

        if options.enable_binarization:
            processed = self.binarize(processed)
            logger.debug("Applied binarization")

        if options.enable_deskewing:
            processed = self.deskew(processed, self.max_deskew_angle)

        return processed

    def apply_hard_cap(self, image: Image.Image) -> Image.Image:
        """
        Fit an image into hard_cap x hard_cap.

        Minor overshoots are left alone: the resize only happens when the
        required scale factor is below ``hard_cap_min_scale``.
        """
        width, height = image.size
        if width <= self.hard_cap_dimension and height <= self.hard_cap_dimension:
            return image

        scale = min(self.hard_cap_dimension / width, self.hard_cap_dimension / height)
        if scale >= self.hard_cap_min_scale:
            logger.debug(f"Skipping hard-cap resize of {width}x{height} (scale {scale:.2f})")
            return image

        new_size = (int(width * scale), int(height * scale))
        logger.debug(f"Hard-cap resize from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return image.resize(new_size, Image.LANCZOS)

    @staticmethod
    def resize_to_max_dimension(image: Image.Image, max_dimension: int) -> Image.Image:
        """Downscale preserving aspect ratio so the longer side is max_dimension."""
        width, height = image.size
        if max(width, height) <= max_dimension:
            return image

        scale = max_dimension / max(width, height)
        new_size = (int(width * scale), int(height * scale))
        logger.debug(f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return image.resize(new_size, Image.LANCZOS)

    @staticmethod
    def to_grayscale(image: Image.Image) -> Image.Image:
        """Desaturate, keeping an RGB image."""
        return ImageOps.grayscale(image).convert('RGB')

    @staticmethod
    def adjust_contrast(image: Image.Image, factor: float, offset: float = 0) -> Image.Image:
        """Multiply every RGB channel by ``factor`` and add ``offset``, clamped."""
        table = [int(min(255.0, max(0.0, level * factor + offset))) for level in range(256)]
        return image.convert('RGB').point(table * 3)

    @staticmethod
    def sharpen(image: Image.Image) -> Image.Image:
        """3x3 sharpening convolution per RGB channel, clamped to [0, 255]."""
        return image.convert('RGB').filter(ImageFilter.Kernel((3, 3), SHARPEN_KERNEL, scale=1))

    @staticmethod
    def binarize(image: Image.Image) -> Image.Image:
        """Black/white image split at Otsu's luminance threshold."""
        gray = np.asarray(image.convert('L'))
        histogram = np.bincount(gray.ravel(), minlength=256)
        threshold = otsu_threshold(histogram)

        logger.debug(f"Otsu threshold: {threshold}")
        binary = np.where(gray > threshold, 255, 0).astype(np.uint8)
        return Image.fromarray(binary, 'L').convert('RGB')

    @staticmethod
    def deskew(image: Image.Image, max_angle: float) -> Image.Image:
        """
        Rotate text lines back to horizontal.

        Large angle estimates are usually layout artefacts rather than
        skew; above ``max_angle`` the image is returned unrotated.
        """
        rgb = np.asarray(image.convert('RGB'))
        gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)
        inverted = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)[1]

        coords = np.column_stack(np.where(inverted > 0))[:, ::-1].astype(np.float32)
        if coords.shape[0] < 200:
            return image

        raw = float(cv2.minAreaRect(coords)[-1])
        angle = min((raw, raw - 90.0, raw + 90.0), key=abs)
        if abs(angle) < 0.01 or abs(angle) > max_angle:
            return image

        height, width = gray.shape
        matrix = cv2.getRotationMatrix2D((width // 2, height // 2), angle, 1.0)
        rotated = cv2.warpAffine(
            rgb,
            matrix,
            (width, height),
            flags=cv2.INTER_CUBIC,
            borderMode=cv2.BORDER_REPLICATE,
        )
        logger.debug(f"Deskewed image by {angle:.2f} degrees")
        return Image.fromarray(rotated, 'RGB')
