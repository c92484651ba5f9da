"""
Tesseract Recognition Backend.

Implements the recognition boundary with Tesseract (pytesseract):
``recognize(image) -> RecognizedText``. Tesseract's word table is
grouped into blocks and lines using its block/paragraph/line numbers.

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package
"""

from collections import OrderedDict
from typing import Dict, List, Tuple

import pytesseract
from PIL import Image

from config import get_config
from invoice_scan.utils.logger import get_logger
from invoice_scan.utils.exceptions import (
    RecognitionEngineNotAvailableError,
    RecognitionError,
)
from .ocr_result import (
    BoundingBox,
    RecognizedBlock,
    RecognizedLine,
    RecognizedText,
    RecognizedWord,
)

logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract recognition backend.

    Attributes:
        language: Tesseract language code (e.g., "eng")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        extra_config: Additional Tesseract command-line options

    Example:
        >>> backend = TesseractBackend()
        >>> recognized = backend.recognize(image)
        >>> print(recognized.text)
    """

    name = "tesseract"

    def __init__(self) -> None:
        self.language = get_config("ocr.tesseract.lang", "eng")
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")

        self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> None:
        """
        Check that the Tesseract binary is reachable.

        Raises:
            RecognitionEngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as e:
            raise RecognitionEngineNotAvailableError(
                f"Tesseract OCR (not installed or not in PATH): {e}"
            )
        logger.info(f"Tesseract version: {version}")

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def recognize(self, image: Image.Image) -> RecognizedText:
        """
        Recognize text regions in an image.

        Args:
            image: PIL Image to process.

        Returns:
            RecognizedText with blocks, lines and words.

        Raises:
            RecognitionError: If Tesseract fails.
        """
        if image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')

        config = self._build_config()
        logger.debug(f"Running Tesseract OCR (config: {config})")

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=config,
                output_type=pytesseract.Output.DICT
            )
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise RecognitionError(str(e), {"engine": self.name})

        blocks = self._build_blocks(data)
        text = '\n'.join(block.text for block in blocks)

        logger.debug(f"Tesseract returned {len(blocks)} blocks, {len(text)} characters")
        return RecognizedText(text=text, blocks=tuple(blocks), engine=self.name)

    def _build_blocks(self, data: Dict[str, List]) -> List[RecognizedBlock]:
        """
        Group Tesseract's flat word table into blocks of lines of words.

        Args:
            data: Dictionary output from image_to_data.

        Returns:
            Recognized blocks in Tesseract's reading order.
        """
        grouped: "OrderedDict[int, OrderedDict[Tuple[int, int], List[RecognizedWord]]]" = OrderedDict()

        for i in range(len(data['text'])):
            text = (data['text'][i] or '').strip()
            if not text:
                continue

            x, y = data['left'][i], data['top'][i]
            w, h = data['width'][i], data['height'][i]
            if w <= 0 or h <= 0:
                continue

            word = RecognizedWord(text=text, bounding_box=BoundingBox(x, y, x + w, y + h))

            block_lines = grouped.setdefault(data['block_num'][i], OrderedDict())
            block_lines.setdefault((data['par_num'][i], data['line_num'][i]), []).append(word)

        blocks = []
        for block_lines in grouped.values():
            lines = []
            for words in block_lines.values():
                words.sort(key=lambda wd: wd.bounding_box.left)
                lines.append(RecognizedLine(
                    text=' '.join(wd.text for wd in words),
                    bounding_box=BoundingBox.union(wd.bounding_box for wd in words),
                    words=tuple(words)
                ))

            blocks.append(RecognizedBlock(
                text='\n'.join(line.text for line in lines),
                bounding_box=BoundingBox.union(line.bounding_box for line in lines),
                lines=tuple(lines)
            ))

        return blocks
