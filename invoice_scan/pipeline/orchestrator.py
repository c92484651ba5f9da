"""
Scan Pipeline Orchestrator.

Runs one scan through every stage and converts any stage failure into
a single terminal OCRError:

    INITIALIZING -> IMAGE_PREPROCESSING -> TEXT_RECOGNITION ->
    FIELD_EXTRACTION -> VALIDATION -> POST_PROCESSING -> COMPLETED

FAILED can be entered from any phase. Each transition is published on
the pipeline's ProgressChannel.

Usage:
    from invoice_scan.pipeline import ScanPipeline

    pipeline = ScanPipeline()
    pipeline.progress.subscribe(print)
    result = pipeline.process_image("invoice.jpg")
    if result.is_success:
        print(result.result.extracted_fields)
"""

import time
from typing import Optional

from invoice_scan.extraction.field_extractor import FieldExtractor, SmartFieldDetector
from invoice_scan.extraction.product_lines import ProductLineExtractor
from invoice_scan.extraction.template_matcher import RuleBasedTemplateMatcher, TemplateMatcher
from invoice_scan.extraction.text_filter import InvoiceTextFilter
from invoice_scan.input_handler.handler import ImageRef, InputHandler
from invoice_scan.input_handler.image_processor import AdaptivePreprocessor
from invoice_scan.input_handler.quality import ImageQualityAssessor
from invoice_scan.ocr_engine.engine import RecognitionBackend, RecognitionOrchestrator, RetryRung
from invoice_scan.ocr_engine.tesseract_backend import TesseractBackend
from invoice_scan.postprocessor.confidence import ConfidenceScorer
from invoice_scan.postprocessor.processor import PostProcessor
from invoice_scan.utils.exceptions import InvoiceScanError
from invoice_scan.utils.helpers import elapsed_ms, generate_scan_id
from invoice_scan.utils.logger import get_logger
from .options import ScanConfig
from .progress import CancellationToken, OCRPhase, ProgressChannel, ProgressEvent
from .scan_result import (
    BatchItemError,
    BatchJob,
    BatchResult,
    OCRError,
    OCRResult,
    OCRScanResult,
    OCRSuccess,
)

logger = get_logger(__name__)

UNEXPECTED_FAILURE_MESSAGE = "Invoice scan failed. Please enter the data manually."

RETRY_PROGRESS = {
    RetryRung.ORIGINAL: ("Retrying with original image", 40.0),
    RetryRung.GRAYSCALE: ("Retrying with grayscale", 45.0),
}


class _ScanRun:
    """Scan id, clock and progress emitter of a single pipeline run."""

    def __init__(
        self,
        progress: ProgressChannel,
        cancellation: Optional[CancellationToken],
    ) -> None:
        self.scan_id = generate_scan_id()
        self.start = time.perf_counter()
        self.progress = progress
        self.cancellation = cancellation

    @property
    def elapsed_ms(self) -> int:
        return elapsed_ms(self.start)

    def emit(self, phase: OCRPhase, operation: str, percentage: float) -> None:
        self.progress.publish(ProgressEvent.create(
            self.scan_id, phase, operation, percentage, self.elapsed_ms
        ))

    def enter(self, phase: OCRPhase, operation: str, percentage: float) -> None:
        """Check for cancellation, then announce the phase."""
        if self.cancellation is not None:
            self.cancellation.raise_if_cancelled(phase.value)
        logger.debug(f"[{self.scan_id}] {phase.value}: {operation}")
        self.emit(phase, operation, percentage)


class ScanPipeline:
    """
    Turns invoice photos into structured, validated fields.

    Attributes:
        progress: Channel on which every scan's ProgressEvents are published.

    Example:
        >>> pipeline = ScanPipeline(backend=TesseractBackend())
        >>> result = pipeline.process_image("receipt.jpg", ScanConfig(
        ...     document_type=DocumentType.RECEIPT))
    """

    def __init__(
        self,
        backend: Optional[RecognitionBackend] = None,
        smart_detector: Optional[SmartFieldDetector] = None,
        template_matcher: Optional[TemplateMatcher] = None,
        progress: Optional[ProgressChannel] = None,
    ) -> None:
        """
        Initialize the pipeline stages.

        Args:
            backend: Recognition backend; Tesseract when omitted.
            smart_detector: Optional field detector whose results take
                precedence over all built-in extraction.
            template_matcher: Template detector; rule based when omitted.
            progress: Channel to publish progress on; a new one when omitted.
        """
        if backend is None:
            backend = TesseractBackend()

        self.progress = progress or ProgressChannel()

        self.input_handler = InputHandler()
        self.quality_assessor = ImageQualityAssessor()
        self.preprocessor = AdaptivePreprocessor()
        self.recognizer = RecognitionOrchestrator(backend)
        self.text_filter = InvoiceTextFilter()
        self.product_extractor = ProductLineExtractor()
        self.field_extractor = FieldExtractor(smart_detector)
        self.post_processor = PostProcessor()
        self.scorer = ConfidenceScorer()
        self.template_matcher = template_matcher or RuleBasedTemplateMatcher()

        logger.info(f"ScanPipeline initialized with backend: {getattr(backend, 'name', backend)}")

    def process_image(
        self,
        image_ref: ImageRef,
        config: Optional[ScanConfig] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> OCRResult:
        """
        Scan one image.

        Args:
            image_ref: Image path or PIL image.
            config: Scan options; settings.yaml defaults when omitted.
            cancellation: Token checked at every phase boundary.

        Returns:
            OCRSuccess with the full result, or OCRError. Never raises
            for stage failures.
        """
        run = _ScanRun(self.progress, cancellation)
        source = self.input_handler.describe(image_ref)
        logger.info(f"[{run.scan_id}] Scanning {source}")

        try:
            result = self._run(run, image_ref, config or ScanConfig.from_settings())
        except InvoiceScanError as e:
            logger.error(f"[{run.scan_id}] Scan failed: {e}")
            return self._fail(run, e.user_message, str(e))
        except Exception as e:
            logger.exception(f"[{run.scan_id}] Unexpected error scanning {source}: {e}")
            return self._fail(run, UNEXPECTED_FAILURE_MESSAGE, str(e))

        logger.info(
            f"[{run.scan_id}] Completed in {result.processing_time_ms} ms: "
            f"{len(result.extracted_fields)} fields, "
            f"confidence {result.confidence.overall:.2f}"
        )
        return OCRSuccess(result)

    def _run(self, run: _ScanRun, image_ref: ImageRef, config: ScanConfig) -> OCRScanResult:
        run.enter(OCRPhase.INITIALIZING, "Starting scan", 0.0)
        image = self.input_handler.load(image_ref)
        metrics = self.quality_assessor.assess(image)

        run.enter(OCRPhase.IMAGE_PREPROCESSING, "Preparing image", 10.0)
        processed = self.preprocessor.preprocess(image, metrics)

        run.enter(OCRPhase.TEXT_RECOGNITION, "Recognizing text", 30.0)
        outcome = self.recognizer.recognize(
            processed,
            image,
            metrics.overall_score,
            on_retry=lambda rung: run.emit(OCRPhase.IMAGE_PREPROCESSING, *RETRY_PROGRESS[rung]),
            cancellation=run.cancellation,
        )
        logger.debug(f"Recognized {len(outcome.blocks)} blocks on the {outcome.final_rung.value} attempt")
        filtered = self.text_filter.filter(outcome.text)
        product_lines = self.product_extractor.extract(filtered.filtered_text)

        run.enter(OCRPhase.FIELD_EXTRACTION, "Extracting fields", 60.0)
        if config.enable_field_extraction:
            fields = self.field_extractor.extract(
                outcome.blocks,
                filtered.filtered_text,
                config.document_type,
                config.field_extraction_options,
            )
        else:
            fields = {}

        run.enter(OCRPhase.VALIDATION, "Validating results", 80.0)
        if config.enable_validation:
            self.post_processor.validate_fields(
                fields, config.post_processing_options.enable_suggestions
            )

        run.enter(OCRPhase.POST_PROCESSING, "Post-processing", 90.0)
        if config.post_processing_options.enable_data_normalization:
            self.post_processor.normalize_fields(fields)

        confidence = self.scorer.score(outcome.blocks, fields, metrics.overall_score)

        template_id = None
        if config.field_extraction_options.enable_smart_field_detection:
            template_id = self.template_matcher.detect_template(config.document_type, fields)

        result = OCRScanResult(
            scan_id=run.scan_id,
            document_type=config.document_type,
            source_image_path=self.input_handler.source_path(image_ref),
            raw_text=filtered.filtered_text,
            original_text=outcome.text,
            text_blocks=tuple(outcome.blocks),
            extracted_fields=fields,
            product_lines=tuple(product_lines),
            confidence=confidence,
            quality=metrics,
            processing_time_ms=run.elapsed_ms,
            template_id=template_id,
        )

        run.emit(OCRPhase.COMPLETED, "Processing completed", 100.0)
        return result

    def _fail(self, run: _ScanRun, message: str, details: str) -> OCRError:
        run.emit(OCRPhase.FAILED, f"Processing failed: {details}", 0.0)
        return OCRError(
            scan_id=run.scan_id,
            message=message,
            processing_time_ms=run.elapsed_ms,
            details=details,
        )

    def process_batch(
        self,
        job: BatchJob,
        cancellation: Optional[CancellationToken] = None,
    ) -> BatchResult:
        """
        Scan every image of a job sequentially.

        A failing image is recorded in ``errors`` and does not stop the
        batch. Only a failure outside the per-image loop sets
        ``BatchResult.error``.
        """
        try:
            config = job.config or ScanConfig.from_settings()
            logger.info(f"Batch {job.job_id}: {len(job.image_refs)} images")

            successes = []
            errors = []
            for index, image_ref in enumerate(job.image_refs, 1):
                logger.info(f"Batch {job.job_id}: image {index}/{len(job.image_refs)}")
                result = self.process_image(image_ref, config, cancellation)

                if isinstance(result, OCRSuccess):
                    successes.append(result.result)
                else:
                    errors.append(BatchItemError(self.input_handler.describe(image_ref), result.message))

        except Exception as e:
            logger.exception(f"Batch {job.job_id} failed: {e}")
            return BatchResult(job_id=job.job_id, error=f"Batch processing failed: {e}")

        logger.info(
            f"Batch {job.job_id} complete: {len(successes)} successful, {len(errors)} failed"
        )
        return BatchResult(
            job_id=job.job_id,
            successes=successes,
            errors=errors,
            total_processed=len(job.image_refs),
        )
