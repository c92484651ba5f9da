import unittest

from invoice_scan.extraction.extraction_result import (
    ExtractedField,
    ValidationResult,
    ValidationType,
)
from invoice_scan.extraction.field_types import FieldType
from invoice_scan.ocr_engine.ocr_result import BoundingBox, TextBlock
from invoice_scan.postprocessor import (
    ConfidenceScorer,
    FieldNormalizer,
    FieldValidator,
    PostProcessor,
)


def make_field(field_type: FieldType, raw: str, processed: str = None) -> ExtractedField:
    return ExtractedField(
        field_type=field_type,
        raw_value=raw,
        processed_value=raw if processed is None else processed,
        confidence=0.8,
        validation_result=ValidationResult(True, ValidationType.PATTERN_MATCHING, confidence=0.8),
    )


class FieldValidatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = FieldValidator()

    def test_numeric_rule(self) -> None:
        valid = self.validator.validate(make_field(FieldType.TOTAL_AMOUNT, "1250.50"))
        self.assertTrue(valid.is_valid)
        self.assertEqual(valid.confidence, 0.9)
        self.assertIs(valid.validation_type, ValidationType.FORMAT_VALIDATION)

        invalid = self.validator.validate(make_field(FieldType.TOTAL_AMOUNT, "12.5.0"))
        self.assertFalse(invalid.is_valid)
        self.assertEqual(invalid.confidence, 0.1)
        self.assertEqual(invalid.error_message, "Invalid number format")

    def test_non_finite_and_underscored_values_are_not_numbers(self) -> None:
        for value in ("nan", "inf", "-Infinity", "1_000", "1e3", "1" * 400, ""):
            with self.subTest(value=value[:12]):
                self.assertFalse(self.validator.validate_numeric(value).is_valid)

        for value in ("12", "-3.5", ".75", "100."):
            with self.subTest(value=value):
                self.assertTrue(self.validator.validate_numeric(value).is_valid)

    def test_date_rule(self) -> None:
        self.assertTrue(self.validator.validate(make_field(FieldType.INVOICE_DATE, "12/05/2024")).is_valid)
        self.assertTrue(self.validator.validate(make_field(FieldType.DUE_DATE, "1-5-24")).is_valid)

        invalid = self.validator.validate(make_field(FieldType.INVOICE_DATE, "2024.05.12"))
        self.assertFalse(invalid.is_valid)
        self.assertEqual(invalid.error_message, "Invalid date format")

    def test_fields_without_rule_keep_their_result(self) -> None:
        extracted = make_field(FieldType.VENDOR_NAME, "Mobile World")
        self.assertIs(self.validator.validate(extracted), extracted.validation_result)

    def test_suggestions(self) -> None:
        amount = make_field(FieldType.TOTAL_AMOUNT, "Rs 120 or 130.50")
        self.assertEqual(FieldValidator.suggest(amount), ["120", "130.50"])

        date = make_field(FieldType.INVOICE_DATE, "12.05.2024")
        self.assertEqual(
            FieldValidator.suggest(date),
            ["12.05.2024", "12.05.2024", "12/05/2024"],
        )

        self.assertEqual(FieldValidator.suggest(make_field(FieldType.EMAIL, "x")), [])


class FieldNormalizerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.normalizer = FieldNormalizer()

    def test_by_category(self) -> None:
        cases = [
            ("Rs 1,250.00", FieldType.TOTAL_AMOUNT, "1250.00"),
            ("12 / 05 / 2024", FieldType.INVOICE_DATE, "12/05/2024"),
            ("+91 (612) 555-0101", FieldType.PHONE_NUMBER, "+91(612)555-0101"),
            ("  Sales@Shop.IN ", FieldType.EMAIL, "sales@shop.in"),
            ("Mobile  World", FieldType.VENDOR_NAME, "Mobile  World"),
        ]
        for value, field_type, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(self.normalizer.normalize(value, field_type), expected)


class PostProcessorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.processor = PostProcessor()

    def test_validate_fields_in_place(self) -> None:
        fields = {
            "total_amount": make_field(FieldType.TOTAL_AMOUNT, "Rs 120 / 130", "abc"),
            "date": make_field(FieldType.INVOICE_DATE, "12/05/2024"),
        }

        result = self.processor.validate_fields(fields)

        self.assertIs(result, fields)
        self.assertEqual(list(fields), ["total_amount", "date"])
        self.assertFalse(fields["total_amount"].validation_result.is_valid)
        self.assertEqual(fields["total_amount"].suggestions, ["120", "130"])
        self.assertTrue(fields["date"].validation_result.is_valid)
        self.assertEqual(fields["date"].suggestions, [])

    def test_suggestions_can_be_disabled(self) -> None:
        fields = {"total_amount": make_field(FieldType.TOTAL_AMOUNT, "Rs 120", "abc")}
        self.processor.validate_fields(fields, enable_suggestions=False)
        self.assertEqual(fields["total_amount"].suggestions, [])

    def test_normalize_fields_in_place(self) -> None:
        fields = {"phone_number": make_field(FieldType.PHONE_NUMBER, "98765 43210")}
        self.processor.normalize_fields(fields)
        self.assertEqual(fields["phone_number"].processed_value, "9876543210")
        self.assertEqual(fields["phone_number"].raw_value, "98765 43210")


class ConfidenceScorerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.scorer = ConfidenceScorer()

    def test_empty_scan_scores_quality_only(self) -> None:
        score = self.scorer.score([], {}, 0.5)
        self.assertAlmostEqual(score.overall, 0.05)
        self.assertEqual(score.completeness, 0.0)

    def test_weighted_overall(self) -> None:
        blocks = [TextBlock("a", "x", BoundingBox.empty(), 0.8), TextBlock("b", "y", BoundingBox.empty(), 0.8)]
        fields = {f"f{i}": make_field(FieldType.NOTES, "n") for i in range(5)}

        score = self.scorer.score(blocks, fields, 1.0)

        self.assertAlmostEqual(score.text_recognition, 0.8)
        self.assertAlmostEqual(score.field_extraction, 0.8)
        self.assertAlmostEqual(score.validation, 0.8)
        self.assertAlmostEqual(score.completeness, 0.5)
        self.assertAlmostEqual(score.overall, 0.3 * 0.8 + 0.3 * 0.8 + 0.2 * 0.8 + 0.1 + 0.05)

    def test_completeness_is_capped(self) -> None:
        fields = {f"f{i}": make_field(FieldType.NOTES, "n") for i in range(25)}
        score = self.scorer.score([], fields, 1.0)
        self.assertEqual(score.completeness, 1.0)
        self.assertLessEqual(score.overall, 1.0)


if __name__ == "__main__":
    unittest.main()
