import json
import shutil
import tempfile
import unittest
from pathlib import Path

from invoice_scan.extraction.extraction_result import ValidationType
from invoice_scan.extraction.field_extractor import FieldExtractionOptions
from invoice_scan.extraction.field_types import DocumentType, FieldType
from invoice_scan.ocr_engine.ocr_result import RecognizedText
from invoice_scan.pipeline import (
    BatchJob,
    CancellationToken,
    OCRError,
    OCRPhase,
    OCRSuccess,
    ScanConfig,
    ScanPipeline,
)
from invoice_scan.pipeline.orchestrator import UNEXPECTED_FAILURE_MESSAGE
from invoice_scan.utils.exceptions import ImageLoadError, RecognitionError
from tests.fakes import SAMPLE_INVOICE_LINES, ScriptedBackend, recognized, striped_image

FULL = recognized(SAMPLE_INVOICE_LINES)
SHORT = recognized(["Invoice No 7 Total 500.00"])


class FailingBackend:
    name = "failing"

    def recognize(self, image):
        raise RuntimeError("engine crashed")


class ProcessImageTests(unittest.TestCase):
    def setUp(self) -> None:
        self.events = []

    def scan(self, backend, config=None, cancellation=None, image=None):
        pipeline = ScanPipeline(backend=backend)
        pipeline.progress.subscribe(self.events.append)
        return pipeline.process_image(image or striped_image(), config, cancellation)

    def test_sample_invoice(self) -> None:
        result = self.scan(ScriptedBackend(FULL))

        self.assertIsInstance(result, OCRSuccess)
        scan = result.result
        self.assertEqual(scan.get_field_value("invoice_number"), "12345")
        self.assertEqual(scan.get_field_value("date"), "12/05/2024")
        self.assertEqual(scan.get_field_value("cgst"), "9")
        self.assertIsNone(scan.get_field_value("vendor_name"))
        self.assertTrue(scan.extracted_fields["date"].validation_result.is_valid)
        self.assertEqual(len(scan.product_lines), 1)
        self.assertEqual(scan.product_lines[0].amount, "19,998.00")
        self.assertEqual(scan.template_id, "generic_invoice")
        self.assertIsNone(scan.source_image_path)
        self.assertNotIn("Thank you for your business", scan.raw_text)
        self.assertIn("Thank you for your business", scan.original_text)
        self.assertEqual(scan.scan_id, result.scan_id)
        self.assertGreaterEqual(scan.confidence.overall, 0.0)
        self.assertLessEqual(scan.confidence.overall, 1.0)

        payload = json.loads(scan.to_json())
        self.assertEqual(payload["document_type"], "invoice")
        self.assertEqual(payload["extracted_fields"]["invoice_number"]["processed_value"], "12345")

    def test_short_invoice_text(self) -> None:
        lines = [
            "Invoice No: 12345",
            "Date: 12/05/2024",
            "Redmi Note 12 128GB",
            "CGST 9% 120.00",
        ]
        config = ScanConfig(field_extraction_options=FieldExtractionOptions(
            enable_table_extraction=True,
            enable_key_value_pairing=True,
        ))

        result = self.scan(ScriptedBackend(recognized(lines)), config)

        self.assertIsInstance(result, OCRSuccess)
        scan = result.result
        self.assertEqual(scan.get_field_value("invoice_number"), "12345")
        self.assertIs(scan.extracted_fields["invoice_number"].field_type, FieldType.INVOICE_NUMBER)
        self.assertEqual(scan.get_field_value("date"), "12/05/2024")
        self.assertEqual(scan.get_field_value("cgst"), "9")
        self.assertIs(scan.extracted_fields["cgst"].field_type, FieldType.TAX_AMOUNT)
        self.assertEqual(
            [line.raw_text for line in scan.product_lines],
            ["Redmi Note 12 128GB"],
        )

    def test_progress_events(self) -> None:
        result = self.scan(ScriptedBackend(SHORT, FULL))

        self.assertTrue(result.is_success)
        self.assertEqual(
            [(e.phase, e.percentage) for e in self.events],
            [
                (OCRPhase.INITIALIZING, 0.0),
                (OCRPhase.IMAGE_PREPROCESSING, 10.0),
                (OCRPhase.TEXT_RECOGNITION, 30.0),
                (OCRPhase.IMAGE_PREPROCESSING, 40.0),
                (OCRPhase.FIELD_EXTRACTION, 60.0),
                (OCRPhase.VALIDATION, 80.0),
                (OCRPhase.POST_PROCESSING, 90.0),
                (OCRPhase.COMPLETED, 100.0),
            ],
        )
        self.assertTrue(all(e.scan_id == result.scan_id for e in self.events))

    def test_no_text_gives_actionable_error(self) -> None:
        backend = ScriptedBackend(RecognizedText())
        result = self.scan(backend)

        self.assertIsInstance(result, OCRError)
        self.assertFalse(result.is_success)
        self.assertEqual(result.message, RecognitionError.default_user_message)
        self.assertIn("no text blocks found", result.details)
        self.assertEqual(len(backend.images), 3)
        self.assertEqual(self.events[-1].phase, OCRPhase.FAILED)
        self.assertEqual(self.events[-1].percentage, 0.0)

    def test_engine_crash_is_contained(self) -> None:
        result = self.scan(FailingBackend())

        self.assertIsInstance(result, OCRError)
        self.assertEqual(result.message, UNEXPECTED_FAILURE_MESSAGE)
        self.assertIn("engine crashed", result.details)

    def test_unreadable_source(self) -> None:
        result = self.scan(ScriptedBackend(FULL), image="does/not/exist.jpg")

        self.assertIsInstance(result, OCRError)
        self.assertIn("Retake the photo", result.message)

    def test_cancelled_before_start(self) -> None:
        token = CancellationToken()
        token.cancel()
        backend = ScriptedBackend(FULL)

        result = self.scan(backend, cancellation=token)

        self.assertIsInstance(result, OCRError)
        self.assertEqual(result.message, "Scan cancelled")
        self.assertEqual(backend.images, [])

    def test_cancelled_between_phases(self) -> None:
        token = CancellationToken()

        def cancel_on_extraction(event) -> None:
            if event.phase is OCRPhase.FIELD_EXTRACTION:
                token.cancel()

        pipeline = ScanPipeline(backend=ScriptedBackend(FULL))
        pipeline.progress.subscribe(cancel_on_extraction)
        pipeline.progress.subscribe(self.events.append)

        result = pipeline.process_image(striped_image(), cancellation=token)

        self.assertEqual(result.message, "Scan cancelled")
        phases = [e.phase for e in self.events]
        self.assertNotIn(OCRPhase.VALIDATION, phases)
        self.assertEqual(phases[-1], OCRPhase.FAILED)

    def test_failing_subscriber_does_not_break_scan(self) -> None:
        def broken(event) -> None:
            raise ValueError("listener bug")

        pipeline = ScanPipeline(backend=ScriptedBackend(FULL))
        pipeline.progress.subscribe(broken)

        self.assertTrue(pipeline.process_image(striped_image()).is_success)

    def test_field_extraction_disabled(self) -> None:
        result = self.scan(ScriptedBackend(FULL), ScanConfig(enable_field_extraction=False))

        self.assertEqual(result.result.extracted_fields, {})
        self.assertEqual(len(result.result.product_lines), 1)

    def test_validation_disabled(self) -> None:
        result = self.scan(ScriptedBackend(FULL), ScanConfig(enable_validation=False))

        validation = result.result.extracted_fields["date"].validation_result
        self.assertIs(validation.validation_type, ValidationType.PATTERN_MATCHING)

    def test_receipt_document_type(self) -> None:
        config = ScanConfig(document_type=DocumentType.RECEIPT)
        result = self.scan(ScriptedBackend(FULL), config)

        self.assertIs(result.result.document_type, DocumentType.RECEIPT)
        self.assertEqual(result.result.template_id, "generic_receipt")


class ProcessBatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = Path(tempfile.mkdtemp())
        self.image_path = self.tmp / "invoice.png"
        striped_image().save(self.image_path)

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_failures_are_isolated(self) -> None:
        missing = str(self.tmp / "missing.jpg")
        job = BatchJob(image_refs=[str(self.image_path), missing, striped_image()])

        result = ScanPipeline(backend=ScriptedBackend(FULL)).process_batch(job)

        self.assertTrue(result.is_success)
        self.assertEqual(result.total_processed, 3)
        self.assertEqual(len(result.successes), 2)
        self.assertEqual(result.successes[0].source_image_path, str(self.image_path))
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].source, missing)
        self.assertEqual(result.errors[0].message, ImageLoadError.default_user_message)
        self.assertEqual(len(json.loads(json.dumps(result.to_dict()))["successes"]), 2)

    def test_batch_level_error(self) -> None:
        job = BatchJob(image_refs=None)

        result = ScanPipeline(backend=ScriptedBackend(FULL)).process_batch(job)

        self.assertFalse(result.is_success)
        self.assertTrue(result.error.startswith("Batch processing failed"))
        self.assertEqual(result.successes, [])


if __name__ == "__main__":
    unittest.main()
