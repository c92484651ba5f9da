"""
Confidence Scoring Module.

Combines recognition, extraction, validation, image quality and field
completeness into one overall confidence for a scan.
"""

from dataclasses import dataclass
from typing import Any, Dict, Sequence

from config import get_config
from invoice_scan.extraction.extraction_result import ExtractedField
from invoice_scan.ocr_engine.ocr_result import TextBlock
from invoice_scan.utils.helpers import clamp


@dataclass(frozen=True)
class ConfidenceScore:
    """Sub-scores and their weighted overall, each in [0, 1]."""
    overall: float
    text_recognition: float
    field_extraction: float
    validation: float
    quality: float
    completeness: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall,
            'text_recognition': self.text_recognition,
            'field_extraction': self.field_extraction,
            'validation': self.validation,
            'quality': self.quality,
            'completeness': self.completeness,
        }


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class ConfidenceScorer:
    """
    Computes ConfidenceScore for a finished scan.

    overall = 0.3 * mean(block confidence)
            + 0.3 * mean(field confidence)
            + 0.2 * mean(field validation confidence)
            + 0.1 * image quality score
            + 0.1 * completeness

    Empty collections contribute 0. Completeness is the extracted field
    count over a nominal complete-document count of 10, capped at 1.
    """

    def __init__(self) -> None:
        self.complete_field_count = get_config("scoring.complete_field_count", 10)
        self.recognition_weight = get_config("scoring.weights.recognition", 0.3)
        self.extraction_weight = get_config("scoring.weights.extraction", 0.3)
        self.validation_weight = get_config("scoring.weights.validation", 0.2)
        self.quality_weight = get_config("scoring.weights.quality", 0.1)
        self.completeness_weight = get_config("scoring.weights.completeness", 0.1)

    def score(
        self,
        blocks: Sequence[TextBlock],
        fields: Dict[str, ExtractedField],
        quality_score: float,
    ) -> ConfidenceScore:
        recognition = _mean([b.confidence for b in blocks])
        extraction = _mean([f.confidence for f in fields.values()])
        validation = _mean([f.validation_result.confidence for f in fields.values()])
        completeness = min(1.0, len(fields) / self.complete_field_count)

        overall = (
            self.recognition_weight * recognition
            + self.extraction_weight * extraction
            + self.validation_weight * validation
            + self.quality_weight * quality_score
            + self.completeness_weight * completeness
        )

        return ConfidenceScore(
            overall=clamp(overall),
            text_recognition=recognition,
            field_extraction=extraction,
            validation=validation,
            quality=quality_score,
            completeness=completeness,
        )
