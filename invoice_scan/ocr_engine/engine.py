"""
Recognition Orchestration Module.

Wraps a text-recognition backend with a retry ladder for sparse output
and normalizes whatever the backend reports into TextBlock records.

Retry ladder (each rung runs only if the previous output was too sparse):
    1. Preprocessed image
    2. Original image, when text < 50 chars and quality > 0.6
    3. Grayscale original, when text is still < 10 chars
    4. Zero blocks after all rungs -> RecognitionError

Usage:
    from invoice_scan.ocr_engine import RecognitionOrchestrator

    orchestrator = RecognitionOrchestrator(TesseractBackend())
    outcome = orchestrator.recognize(processed, original, metrics.overall_score)
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol, Set, Tuple

from PIL import Image, ImageOps

from config import get_config
from invoice_scan.utils.exceptions import RecognitionError
from invoice_scan.utils.logger import get_logger
from .ocr_result import (
    BoundingBox,
    RecognizedBlock,
    RecognizedLine,
    RecognizedText,
    TextBlock,
    TextLine,
    TextWord,
)

logger = get_logger(__name__)


class RecognitionBackend(Protocol):
    """Anything that turns an image into RecognizedText."""

    name: str

    def recognize(self, image: Image.Image) -> RecognizedText:
        ...


class RetryRung(Enum):
    """Image variant a recognition attempt ran on."""
    PREPROCESSED = "preprocessed"
    ORIGINAL = "original"
    GRAYSCALE = "grayscale"


@dataclass
class RecognitionOutcome:
    """
    Normalized output of the retry ladder.

    Attributes:
        text: Recognized text of the last attempt.
        blocks: Normalized text blocks of the last attempt.
        attempts: Rungs that were executed, in order.
    """
    text: str
    blocks: List[TextBlock]
    attempts: List[RetryRung] = field(default_factory=list)

    @property
    def final_rung(self) -> RetryRung:
        return self.attempts[-1]


class RecognitionOrchestrator:
    """
    Runs the recognition backend with sparse-output retries.

    Attributes:
        backend: Injected recognition backend.
        placeholder_confidence: Confidence assigned to every block, line
            and word, since backends do not report per-region confidence.
    """

    def __init__(self, backend: RecognitionBackend) -> None:
        self.backend = backend

        self.placeholder_confidence = get_config("recognition.placeholder_confidence", 0.8)
        self.min_text_length = get_config("recognition.retry.min_text_length", 50)
        self.original_min_quality = get_config("recognition.retry.original_min_quality", 0.6)
        self.grayscale_min_text_length = get_config(
            "recognition.retry.grayscale_min_text_length", 10
        )

    def recognize(
        self,
        processed: Image.Image,
        original: Image.Image,
        quality_score: float,
        on_retry: Optional[Callable[[RetryRung], None]] = None,
        cancellation=None,
    ) -> RecognitionOutcome:
        """
        Recognize text, retrying on alternative images when output is sparse.

        Args:
            processed: Image produced by the adaptive preprocessor.
            original: Unprocessed source image.
            quality_score: Overall quality score of ``original``.
            on_retry: Called before each retry rung.
            cancellation: Optional token; its ``raise_if_cancelled`` is
                invoked before every rung.

        Returns:
            RecognitionOutcome of the last executed rung.

        Raises:
            RecognitionError: If the final attempt produced no text blocks.
            ScanCancelledError: If cancelled between rungs.
        """
        attempts = []

        result = self._attempt(RetryRung.PREPROCESSED, processed, attempts, None, cancellation)

        if (result.text_length < self.min_text_length
                and quality_score > self.original_min_quality):
            logger.info(
                f"Sparse output ({result.text_length} chars) on a good image, "
                f"retrying with the original"
            )
            result = self._attempt(RetryRung.ORIGINAL, original, attempts, on_retry, cancellation)

        if result.text_length < self.grayscale_min_text_length:
            logger.info(f"Sparse output ({result.text_length} chars), retrying in grayscale")
            grayscale = ImageOps.grayscale(original).convert('RGB')
            result = self._attempt(RetryRung.GRAYSCALE, grayscale, attempts, on_retry, cancellation)

        if result.is_empty():
            raise RecognitionError(
                "no text blocks found",
                {"attempts": [rung.value for rung in attempts]}
            )

        blocks = self.normalize(result)
        logger.info(
            f"Recognized {len(blocks)} blocks ({result.text_length} chars) "
            f"after {len(attempts)} attempt(s)"
        )
        return RecognitionOutcome(text=result.text, blocks=blocks, attempts=attempts)

    def _attempt(
        self,
        rung: RetryRung,
        image: Image.Image,
        attempts: List[RetryRung],
        on_retry: Optional[Callable[[RetryRung], None]],
        cancellation,
    ) -> RecognizedText:
        if cancellation is not None:
            cancellation.raise_if_cancelled(f"recognition ({rung.value})")
        if on_retry is not None:
            on_retry(rung)

        attempts.append(rung)
        result = self.backend.recognize(image)
        logger.debug(f"Attempt '{rung.value}': {len(result.blocks)} blocks")
        return result

    def normalize(self, result: RecognizedText) -> List[TextBlock]:
        """Convert backend output into TextBlocks with placeholder confidence."""
        used_ids: Set[str] = set()
        return [self._normalize_block(block, used_ids) for block in result.blocks]

    def _normalize_block(self, block: RecognizedBlock, used_ids: Set[str]) -> TextBlock:
        if block.bounding_box is not None and str(block.bounding_box) not in used_ids:
            block_id = str(block.bounding_box)
        else:
            block_id = str(uuid.uuid4())
        used_ids.add(block_id)

        return TextBlock(
            block_id=block_id,
            text=block.text,
            bounding_box=block.bounding_box or BoundingBox.empty(),
            confidence=self.placeholder_confidence,
            lines=tuple(self._normalize_line(line) for line in block.lines),
        )

    def _normalize_line(self, line: RecognizedLine) -> TextLine:
        words: Tuple[TextWord, ...] = tuple(
            TextWord(
                text=word.text,
                bounding_box=word.bounding_box or BoundingBox.empty(),
                confidence=self.placeholder_confidence,
            )
            for word in line.words
        )
        return TextLine(
            text=line.text,
            bounding_box=line.bounding_box or BoundingBox.empty(),
            confidence=self.placeholder_confidence,
            angle=line.angle,
            words=words,
        )
