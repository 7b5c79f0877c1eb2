"""Render a :class:`Bill` as a PDF receipt with fpdf2."""

import logging
from decimal import Decimal

from fpdf import FPDF

from ..models.models import Bill
from ..utils.constants import PDF_CURRENCY, STORE_NAME, TAX_RATE

logger = logging.getLogger(__name__)

LEFT = 14
WIDTH = 180
ROW_HEIGHT = 10
TABLE_TOP = 35
BOTTOM_MARGIN = 20

# x positions of the item table columns
COLUMNS = (14, 100, 140, 170)

HEADER_FILL = (128, 0, 128)
ROW_FILLS = ((230, 240, 255), (245, 248, 255))


def _latin1(text: str) -> str:
    return text.encode('latin-1', 'replace').decode('latin-1')


def _money(amount: Decimal) -> str:
    return f"{PDF_CURRENCY}{amount:.2f}"


class BillDocument(FPDF):

    def __init__(self, bill: Bill):
        super().__init__(unit='mm', format='A4')
        self.bill = bill
        self.set_auto_page_break(False)
        self.row_index = 0
        self.y_offset = 0

    def _ensure_room(self) -> None:
        if self.y_offset + ROW_HEIGHT > self.h - BOTTOM_MARGIN:
            self.add_page()
            self.y_offset = TABLE_TOP - ROW_HEIGHT // 2

    def _fit(self, text: str, width: float) -> str:
        """Cut ``text`` with an ellipsis so it fits in ``width`` mm."""
        if self.get_string_width(text) <= width:
            return text
        while text and self.get_string_width(text + '...') > width:
            text = text[:-1]
        return text + '...'

    def _table_row(self, cells) -> None:
        """Draw one table row; rows alternate between two fills."""
        self._ensure_room()
        top = self.y_offset - 5
        self.set_fill_color(*ROW_FILLS[self.row_index % 2])
        self.rect(LEFT, top, WIDTH, ROW_HEIGHT, style='F')
        self.set_line_width(0.5)
        self.rect(LEFT, top, WIDTH, ROW_HEIGHT)
        cells = list(cells)
        edges = [x for x, _ in cells[1:]] + [LEFT + WIDTH]
        for (x, value), right in zip(cells, edges):
            self.text(x + 1, self.y_offset + 1, self._fit(_latin1(value), right - x - 2))
        self.row_index += 1
        self.y_offset += ROW_HEIGHT

    def _table_header(self) -> None:
        self.add_page()
        self.set_font('Helvetica', 'B', 20)
        self.text(LEFT, 20, "Order Bill")
        self.set_font('Helvetica', '', 12)
        self.text(LEFT, 26, _latin1(f"Customer: {self.bill.customer_name}"))

        self.set_font('Helvetica', 'B', 14)
        self.set_text_color(255, 255, 255)
        self.set_fill_color(*HEADER_FILL)
        self.rect(LEFT, TABLE_TOP - 5, WIDTH, ROW_HEIGHT, style='F')
        for x, title in zip(COLUMNS, ("Product", "Qty", "Price", "Total")):
            self.text(x + 1, TABLE_TOP + 1, title)
        self.set_text_color(0, 0, 0)
        self.set_font('Helvetica', '', 12)
        self.y_offset = TABLE_TOP + ROW_HEIGHT

    def build(self) -> bytes:
        bill = self.bill
        self._table_header()

        for line in bill.lines:
            self._table_row(zip(COLUMNS, (
                line.name,
                str(line.quantity),
                _money(line.unit_price),
                _money(line.line_total),
            )))

        self.y_offset += ROW_HEIGHT
        summary = (
            f"Date: {bill.generated_at:%d/%m/%Y}",
            f"Payment: {bill.payment_method}",
            f"Shipping Address: {bill.address_text}",
            f"Subtotal: {_money(bill.subtotal)}",
            f"Tax ({TAX_RATE * 100:.0f}%): {_money(bill.tax)}",
            f"Total: {_money(bill.grand_total)}",
        )
        for text in summary:
            self._table_row([(LEFT, text)])

        self._ensure_room()
        self.set_font('Helvetica', 'I', 10)
        self.text(LEFT, self.y_offset + 5, f"Thank you for shopping with {STORE_NAME}!")

        return bytes(self.output())


def render_bill_pdf(bill: Bill) -> bytes:
    document = BillDocument(bill)
    data = document.build()
    logger.info(f"Rendered bill for {bill.customer_name}: {len(bill.lines)} lines, {document.page_no()} pages")
    return data
