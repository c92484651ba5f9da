import unittest

from invoice_scan.extraction.text_filter import (
    REMOVE_PATTERNS,
    InvoiceTextFilter,
    RemovalReason,
    matches_keep_pattern,
    matches_remove_pattern,
)
from tests.fakes import SAMPLE_INVOICE_LINES


# One line per REMOVE pattern, each also carrying content a keep rule would take
BOILERPLATE_LINES = [
    "Registered Office: Invoice No 99 Total 1,000.00",
    "Warranty void after 12 months Rs. 500.00",
    "Subject to Patna Jurisdiction CGST 9%",
    "Visit us for Redmi 128GB offers",
    "Bank Name: SBI Branch Patna 1,234.00",
    "Pin Code 800001 Buyer copy",
    "www.mobileworld.in GSTIN 10ABCDE1234F1Z5",
    "Authorized Signatory Date: 12/05/2024",
    "--",
    "**********",
]


def is_subsequence(needle, haystack) -> bool:
    it = iter(haystack)
    return all(item in it for item in needle)


class RemovePatternTests(unittest.TestCase):
    def test_boilerplate_and_artefacts_are_removed(self) -> None:
        for line in ("Registered Office: Patna", "Bank Name: SBI", "www.shop.in",
                     "--", "==========", "Authorized Signatory"):
            with self.subTest(line=line):
                self.assertTrue(matches_remove_pattern(line))

    def test_invoice_content_is_not_removed(self) -> None:
        for line in ("Rs. 1,000.00", "Total ........ 500.00", "Invoice No: 42"):
            with self.subTest(line=line):
                self.assertFalse(matches_remove_pattern(line))

    def test_keep_patterns(self) -> None:
        self.assertTrue(matches_keep_pattern("CGST @ 9%"))
        self.assertTrue(matches_keep_pattern("HSN 85171300"))
        self.assertTrue(matches_keep_pattern("₹ 450"))
        self.assertFalse(matches_keep_pattern("Hello world"))


class InvoiceTextFilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.text_filter = InvoiceTextFilter()

    def test_sample_invoice(self) -> None:
        result = self.text_filter.filter("\n".join(SAMPLE_INVOICE_LINES))

        kept = result.filtered_text.split("\n")
        self.assertEqual(kept, [
            "Tax Invoice",
            "Invoice No: 12345",
            "Invoice Date: 12-05-2024",
            "Sold By: Mobile World",
            "Buyer: Ravi Kumar",
            "Sl No Description of Goods Quantity Rate Amount",
            "Redmi 13C 128GB Black 2 PCS 9,999.00 19,998.00",
            "Total 19,998.00",
            "CGST 9% 899.91",
        ])
        self.assertTrue(result.product_table_detected)
        self.assertEqual(result.original_line_count, len(SAMPLE_INVOICE_LINES))
        self.assertEqual(result.filtered_line_count, 9)
        self.assertEqual(
            [(r.reason, r.line) for r in result.removed_lines],
            [
                (RemovalReason.PATTERN_MATCH, "Registered Office: 12 MG Road"),
                (RemovalReason.PATTERN_MATCH, "Thank you for your business"),
            ],
        )

    def test_filtered_text_is_a_subsequence(self) -> None:
        text = "\n".join(SAMPLE_INVOICE_LINES + ["~~", "", "   Subject to Patna jurisdiction  "])
        result = self.text_filter.filter(text)

        original = [line.strip() for line in text.split("\n")]
        self.assertTrue(is_subsequence(result.filtered_text.split("\n"), original))
        self.assertGreater(result.text_reduction, 0.0)

    def test_removed_lines_never_survive(self) -> None:
        result = self.text_filter.filter("Invoice No 7\nVisit us at www.example.com\n######")
        for line in result.filtered_text.split("\n"):
            self.assertFalse(matches_remove_pattern(line))

    def test_remove_patterns_win_in_every_section(self) -> None:
        # header, buyer block, product table, footer
        for pattern, line in zip(REMOVE_PATTERNS, BOILERPLATE_LINES):
            self.assertTrue(pattern.fullmatch(line), line)
            for position in (1, 6, 7, len(SAMPLE_INVOICE_LINES)):
                with self.subTest(line=line, position=position):
                    lines = list(SAMPLE_INVOICE_LINES)
                    lines.insert(position, "  " + line + " ")

                    result = self.text_filter.filter("\n".join(lines))

                    kept = result.filtered_text.split("\n")
                    self.assertNotIn(line, kept)
                    self.assertIn(
                        (RemovalReason.PATTERN_MATCH, line),
                        [(r.reason, r.line) for r in result.removed_lines],
                    )
                    for kept_line in kept:
                        self.assertFalse(matches_remove_pattern(kept_line))

    def test_party_address_lines_are_removed(self) -> None:
        text = "\n".join([
            "Sold By: Mobile World",
            "Patna Bihar - 800001",
            "Buyer: Ravi Kumar",
            "Area code 0612",
            "Description of goods",
            "Redmi 13C 64GB 1 PCS 8,999.00 8,999.00",
            "Visit us at our store",
            "Hello world",
        ])

        result = self.text_filter.filter(text)

        self.assertEqual(result.filtered_text.split("\n"), [
            "Sold By: Mobile World",
            "Buyer: Ravi Kumar",
            "Description of goods",
            "Redmi 13C 64GB 1 PCS 8,999.00 8,999.00",
        ])
        self.assertEqual(
            [r.reason for r in result.removed_lines],
            [
                RemovalReason.VENDOR_ADDRESS,
                RemovalReason.BUYER_ADDRESS,
                RemovalReason.PATTERN_MATCH,
                RemovalReason.NO_PATTERN_MATCHED,
            ],
        )

    def test_empty_text(self) -> None:
        result = self.text_filter.filter("")
        self.assertEqual(result.filtered_text, "")
        self.assertEqual(result.filtered_line_count, 0)
        self.assertFalse(result.product_table_detected)
        self.assertEqual(result.text_reduction, 0.0)


if __name__ == "__main__":
    unittest.main()
