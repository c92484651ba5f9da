"""
Product Line Extraction Module.

Pulls line items (phone model descriptions with quantity, rate and
amount) out of filtered invoice text. A line only counts as a product
when it names a known brand and a storage size.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from invoice_scan.utils.logger import get_logger

logger = get_logger(__name__)

BRAND_RE = re.compile(r"(?:Redmi|Realme|Samsung|Vivo|Oppo|OnePlus|iPhone|Poco|MI)", re.IGNORECASE)
STORAGE_RE = re.compile(r"\d+\s*(?:gb|GB)", re.IGNORECASE)
QUANTITY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:PCS|Nos)", re.IGNORECASE)
MONEY_RE = re.compile(r"\d{1,6}[,\d]*\.\d{2}")
SECTION_END_RE = re.compile(r"(?:total|output|taxable)")


@dataclass(frozen=True)
class ProductLine:
    """One line item; numeric parts stay as the strings found in the text."""
    raw_text: str
    quantity: Optional[str] = None
    rate: Optional[str] = None
    amount: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'raw_text': self.raw_text,
            'quantity': self.quantity,
            'rate': self.rate,
            'amount': self.amount,
        }


def parse_product_line(line: str) -> Optional[ProductLine]:
    """
    Parse a single line as a product line.

    Returns:
        ProductLine, or None when the line lacks a brand or storage size.

    Example:
        >>> parse_product_line("Redmi 13C 128GB Black 2 PCS 9,999.00 19,998.00").rate
        '9,999.00'
    """
    if not (BRAND_RE.search(line) and STORAGE_RE.search(line)):
        return None

    quantity = QUANTITY_RE.search(line)
    money = MONEY_RE.findall(line)

    return ProductLine(
        raw_text=line,
        quantity=quantity.group(1) if quantity else None,
        rate=money[0] if len(money) > 0 else None,
        amount=money[1] if len(money) > 1 else None,
    )


class ProductLineExtractor:
    """
    Extracts product lines from the product section of filtered text.

    The section opens on a "description" heading and closes on a
    total/output/taxable line. Text without any "description" heading is
    scanned as a whole.
    """

    def extract(self, filtered_text: str) -> List[ProductLine]:
        lines = [line.strip() for line in filtered_text.split("\n")]
        lines = [line for line in lines if line]

        has_heading = any("description" in line.lower() for line in lines)
        in_section = not has_heading

        products = []
        for line in lines:
            lower = line.lower()

            if "description" in lower:
                in_section = True
                continue

            if in_section and has_heading and SECTION_END_RE.search(lower):
                in_section = False
                continue

            if not in_section:
                continue

            product = parse_product_line(line)
            if product is not None:
                products.append(product)

        logger.debug(f"Extracted {len(products)} product lines")
        return products
