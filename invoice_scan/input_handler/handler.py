"""
Image Input Handler Module.

Resolves an image reference (a filesystem path or an already decoded
PIL image) into an upright RGB image ready for quality assessment.

Usage:
    from invoice_scan.input_handler import InputHandler

    handler = InputHandler()
    image = handler.load("receipt.jpg")
"""

from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from config import get_config
from invoice_scan.utils.exceptions import ImageLoadError, UnsupportedFileTypeError
from invoice_scan.utils.helpers import get_file_extension
from invoice_scan.utils.logger import get_logger

logger = get_logger(__name__)

ImageRef = Union[str, Path, Image.Image]


class InputHandler:
    """
    Loads invoice photos for the scan pipeline.

    Attributes:
        supported_extensions: Lowercase extensions accepted for path input.
        auto_orient: Whether EXIF orientation is applied on load.
    """

    IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.tif', '.tiff', '.bmp', '.webp')

    def __init__(self) -> None:
        extensions = get_config("input.supported_extensions", list(self.IMAGE_EXTENSIONS))
        self.supported_extensions = {ext.lower() for ext in extensions}
        self.auto_orient = get_config("input.auto_orient", True)

    def describe(self, image_ref: ImageRef) -> str:
        """Short human-readable label for an image reference."""
        if isinstance(image_ref, Image.Image):
            return f"<image {image_ref.width}x{image_ref.height}>"
        return str(image_ref)

    def source_path(self, image_ref: ImageRef) -> Optional[str]:
        """Filesystem path of an image reference, None for in-memory images."""
        if isinstance(image_ref, Image.Image):
            return None
        return str(image_ref)

    def validate_path(self, filepath: Union[str, Path]) -> Path:
        """
        Check that a path points to a non-empty image of a supported type.

        Raises:
            UnsupportedFileTypeError: Extension not in supported_extensions.
            ImageLoadError: Missing, not a regular file, or empty.
        """
        path = Path(filepath)

        extension = get_file_extension(path)
        if extension not in self.supported_extensions:
            raise UnsupportedFileTypeError(extension, sorted(self.supported_extensions))

        if not path.exists():
            raise ImageLoadError(str(filepath), "file not found")
        if not path.is_file():
            raise ImageLoadError(str(filepath), "not a regular file")
        if path.stat().st_size == 0:
            raise ImageLoadError(str(filepath), "file is empty")

        return path

    def load(self, image_ref: ImageRef) -> Image.Image:
        """
        Resolve an image reference to an RGB image.

        Args:
            image_ref: Path to an image file, or a PIL image.

        Returns:
            Upright RGB image.

        Raises:
            InputError: If the reference cannot be turned into an image.
        """
        if isinstance(image_ref, Image.Image):
            return self._normalize(image_ref)

        path = self.validate_path(image_ref)
        logger.debug(f"Loading image: {path}")

        try:
            with Image.open(path) as opened:
                opened.load()
                image = self._normalize(opened)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageLoadError(str(image_ref), str(e)) from e

        logger.debug(f"Loaded {path.name}: {image.width}x{image.height}")
        return image

    def _normalize(self, image: Image.Image) -> Image.Image:
        if image.width == 0 or image.height == 0:
            raise ImageLoadError(self.describe(image), "image has no pixels")

        if self.auto_orient:
            image = ImageOps.exif_transpose(image)

        if image.mode != 'RGB':
            image = image.convert('RGB')
        return image
