"""
OCR Result Data Classes.

Two layers of text structures live here:

* ``Recognized*`` records are what a recognition backend returns: raw
  text regions whose bounding boxes may be missing.
* ``Text*`` records are the normalized block/line/word hierarchy the
  rest of the pipeline consumes. Every level carries a confidence and a
  bounding box; blocks carry an identifier that extracted fields refer to.

All records are frozen: they are produced once per recognition call and
afterwards only filtered or copied.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned rectangle in image pixels.

    Example:
        >>> BoundingBox(10, 20, 110, 40).width
        100
    """
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @classmethod
    def empty(cls) -> 'BoundingBox':
        return cls(0, 0, 0, 0)

    @classmethod
    def union(cls, boxes: Iterable['BoundingBox']) -> Optional['BoundingBox']:
        """Smallest box enclosing all ``boxes``; None when there are none."""
        boxes = list(boxes)
        if not boxes:
            return None
        return cls(
            left=min(b.left for b in boxes),
            top=min(b.top for b in boxes),
            right=max(b.right for b in boxes),
            bottom=max(b.bottom for b in boxes),
        )

    def to_list(self) -> list:
        return [self.left, self.top, self.right, self.bottom]

    def __str__(self) -> str:
        return f"{self.left},{self.top},{self.right},{self.bottom}"


# =============================================================================
# BACKEND OUTPUT
# =============================================================================

@dataclass(frozen=True)
class RecognizedWord:
    """A word as reported by a recognition backend."""
    text: str
    bounding_box: Optional[BoundingBox] = None


@dataclass(frozen=True)
class RecognizedLine:
    """A line as reported by a recognition backend."""
    text: str
    bounding_box: Optional[BoundingBox] = None
    angle: float = 0.0
    words: Tuple[RecognizedWord, ...] = ()


@dataclass(frozen=True)
class RecognizedBlock:
    """A text region as reported by a recognition backend."""
    text: str
    bounding_box: Optional[BoundingBox] = None
    lines: Tuple[RecognizedLine, ...] = ()


@dataclass(frozen=True)
class RecognizedText:
    """
    Complete backend output for one image.

    Attributes:
        text: Full recognized text, lines separated by newlines.
        blocks: Text regions in reading order.
        engine: Name of the backend that produced it.
    """
    text: str = ""
    blocks: Tuple[RecognizedBlock, ...] = ()
    engine: str = "unknown"

    @property
    def text_length(self) -> int:
        """Length of the recognized text ignoring surrounding whitespace."""
        return len(self.text.strip())

    def is_empty(self) -> bool:
        return len(self.blocks) == 0


# =============================================================================
# NORMALIZED HIERARCHY
# =============================================================================

@dataclass(frozen=True)
class TextWord:
    """Individual word within a line."""
    text: str
    bounding_box: BoundingBox
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'bounding_box': self.bounding_box.to_list(),
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class TextLine:
    """Line of text with its skew angle and words."""
    text: str
    bounding_box: BoundingBox
    confidence: float
    angle: float = 0.0
    words: Tuple[TextWord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'bounding_box': self.bounding_box.to_list(),
            'confidence': self.confidence,
            'angle': self.angle,
            'words': [w.to_dict() for w in self.words],
        }


@dataclass(frozen=True)
class TextBlock:
    """
    Text region with position, content and a stable identifier.

    Attributes:
        block_id: Identifier referenced by ExtractedField.source_text_blocks.
        text: Block text.
        bounding_box: Region of the block in the recognized image.
        confidence: Recognition confidence (0-1).
        lines: Lines inside the block.
    """
    block_id: str
    text: str
    bounding_box: BoundingBox
    confidence: float
    lines: Tuple[TextLine, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'block_id': self.block_id,
            'text': self.text,
            'bounding_box': self.bounding_box.to_list(),
            'confidence': self.confidence,
            'lines': [l.to_dict() for l in self.lines],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
