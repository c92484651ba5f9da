import unittest

from invoice_scan.extraction.product_lines import ProductLineExtractor, parse_product_line


class ParseProductLineTests(unittest.TestCase):
    def test_full_product_line(self) -> None:
        product = parse_product_line("Redmi 13C 128GB Black 2 PCS 9,999.00 19,998.00")

        self.assertEqual(product.quantity, "2")
        self.assertEqual(product.rate, "9,999.00")
        self.assertEqual(product.amount, "19,998.00")

    def test_missing_numbers_are_none(self) -> None:
        product = parse_product_line("Samsung Galaxy M14 64 GB Blue")

        self.assertEqual(product.raw_text, "Samsung Galaxy M14 64 GB Blue")
        self.assertIsNone(product.quantity)
        self.assertIsNone(product.rate)
        self.assertIsNone(product.amount)

    def test_requires_brand_and_storage(self) -> None:
        self.assertIsNone(parse_product_line("Phone case 2 PCS 199.00 398.00"))
        self.assertIsNone(parse_product_line("Vivo charger 1 Nos 499.00"))


class ProductLineExtractorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.extractor = ProductLineExtractor()

    def test_products_inside_section_only(self) -> None:
        text = "\n".join([
            "Oppo A78 128GB 1 PCS 17,999.00 17,999.00",
            "Sl No Description of Goods Quantity Rate Amount",
            "Redmi 13C 128GB Black 2 PCS 9,999.00 19,998.00",
            "Realme Narzo 64GB 1 PCS 8,499.00 8,499.00",
            "Total 28,497.00",
            "Poco X5 256GB 1 PCS 21,999.00 21,999.00",
        ])

        products = self.extractor.extract(text)

        self.assertEqual(
            [p.raw_text for p in products],
            [
                "Redmi 13C 128GB Black 2 PCS 9,999.00 19,998.00",
                "Realme Narzo 64GB 1 PCS 8,499.00 8,499.00",
            ],
        )

    def test_text_without_heading_is_scanned_whole(self) -> None:
        text = "Invoice No 12\nOnePlus Nord 128GB 1 Nos 24,999.00 24,999.00\nTotal 24,999.00"

        products = self.extractor.extract(text)

        self.assertEqual(len(products), 1)
        self.assertEqual(products[0].quantity, "1")
        self.assertEqual(products[0].amount, "24,999.00")

    def test_empty_text(self) -> None:
        self.assertEqual(self.extractor.extract(""), [])


if __name__ == "__main__":
    unittest.main()
