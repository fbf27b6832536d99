import base64
import io
import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import conf
from .exceptions import RenderTargetMissing
from .ledger import build_ledger
from .records import RenderedStatement, RenderTag
from .utils import format_currency, format_date, format_period

logger = logging.getLogger(__name__)

LOGO_MAX_WIDTH = 100 * mm
LOGO_MAX_HEIGHT = 55 * mm

BRAND_BLUE = colors.Color(0 / 255, 95 / 255, 163 / 255)
HEADER_NAVY = colors.Color(10 / 255, 30 / 255, 50 / 255)
GRID_GREY = colors.Color(200 / 255, 200 / 255, 200 / 255)
TOTAL_GREEN = colors.HexColor("#05ed05")
LABEL_GREY = colors.Color(100 / 255, 100 / 255, 100 / 255)

# Shared by the ledger and the total table so their columns line up
COL_WIDTHS = [25 * mm, 20 * mm, 20 * mm, 35 * mm, 20 * mm, 30 * mm, 30 * mm]
COLUMN_HEADERS = ["Transaction Date", "Number", "Region", "Site Location", "Type", "Amount", "Balance"]


def statement_file_name(customer_name, end_date):
    return f"SOA_{customer_name}_{end_date.isoformat()}.pdf"


def _money(amount):
    return f"{conf.get('SOA_CURRENCY')} {format_currency(amount)}"


def _open_logo(logo):
    if logo.startswith("data:"):
        header, _, payload = logo.partition(",")
        if ";base64" not in header:
            raise ValueError("logo data URL is not base64 encoded")
        return io.BytesIO(base64.b64decode(payload))
    return logo


def _logo_flowable(logo):
    """Logo scaled into the header box, or ``None`` when it cannot be decoded."""
    if not logo:
        return None
    try:
        reader = ImageReader(_open_logo(logo))
        img_w, img_h = reader.getSize()
        # force a full decode so broken images fail here rather than mid-build
        reader.getRGBData()
    except Exception:
        logger.warning("Error adding logo, using title text instead", exc_info=True)
        return None

    ratio = img_h / img_w
    width = LOGO_MAX_WIDTH
    height = width * ratio
    if height > LOGO_MAX_HEIGHT:
        height = LOGO_MAX_HEIGHT
        width = height / ratio
    flowable = Image(_open_logo(logo), width=width, height=height)
    flowable.hAlign = "CENTER"
    return flowable


def _styles():
    return {
        "title": ParagraphStyle(name="title", fontName="Helvetica", fontSize=16, leading=20,
                                alignment=TA_CENTER, textColor=BRAND_BLUE),
        "label": ParagraphStyle(name="label", fontName="Helvetica-Bold", fontSize=10, leading=12,
                                alignment=TA_LEFT, textColor=LABEL_GREY),
        "label_right": ParagraphStyle(name="label_right", fontName="Helvetica-Bold", fontSize=10,
                                      leading=12, alignment=TA_RIGHT, textColor=LABEL_GREY),
        "value": ParagraphStyle(name="value", fontName="Helvetica", fontSize=10, leading=12,
                                alignment=TA_LEFT),
        "value_right": ParagraphStyle(name="value_right", fontName="Helvetica", fontSize=10,
                                      leading=12, alignment=TA_RIGHT),
        "banner": ParagraphStyle(name="banner", fontName="Helvetica-Bold", fontSize=10, leading=12,
                                 alignment=TA_LEFT, textColor=colors.white),
        "banner_amount": ParagraphStyle(name="banner_amount", fontName="Helvetica-Bold", fontSize=10,
                                        leading=12, alignment=TA_RIGHT, textColor=colors.white),
        "head": ParagraphStyle(name="head", fontName="Helvetica-Bold", fontSize=9, leading=11,
                               alignment=TA_CENTER, textColor=colors.white),
        "center": ParagraphStyle(name="center", fontName="Helvetica", fontSize=8, leading=10,
                                 alignment=TA_CENTER),
        "amount": ParagraphStyle(name="amount", fontName="Helvetica", fontSize=8, leading=10,
                                 alignment=TA_RIGHT),
        "total": ParagraphStyle(name="total", fontName="Helvetica-Bold", fontSize=8, leading=10,
                                alignment=TA_CENTER),
        "total_amount": ParagraphStyle(name="total_amount", fontName="Helvetica-Bold", fontSize=8,
                                       leading=10, alignment=TA_RIGHT),
        "footer": ParagraphStyle(name="footer", fontName="Helvetica-Bold", fontSize=9, leading=12,
                                 alignment=TA_LEFT, textColor=LABEL_GREY),
    }


def _info_block(customer_name, config, styles, usable_width):
    def p(text, style):
        return Paragraph(escape(text), styles[style])

    data = [
        [p("CUSTOMER NAME:", "label"), p("STATEMENT PERIOD:", "label_right")],
        [p(customer_name, "value"),
         p(format_period(config.start_date, config.end_date), "value_right")],
        [p("OPERATING UNIT:", "label"), ""],
        [p(config.operating_unit or "", "value"), ""],
    ]
    t = Table(data, colWidths=[usable_width * 0.6, usable_width * 0.4])
    t.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), 1),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
        ("TOPPADDING", (0, 2), (-1, 2), 8),
    ]))
    return t


def ledger_table_rows(ledger):
    """Display strings for each ledger row, in table column order."""
    rows = []
    for row in ledger.rows:
        trx = row.transaction
        amount_str = _money(abs(row.amount))
        display_amount = f"-{amount_str}" if trx.trx_type == RenderTag.PAYMENT else amount_str
        rows.append([
            format_date(trx.trx_date),
            trx.number,
            trx.region,
            trx.site_location,
            trx.trx_type.value,
            display_amount,
            _money(row.balance),
        ])
    return rows


def _ledger_table(ledger, styles):
    table_data = [
        [Paragraph("OPENING BALANCE", styles["banner"]), "", "", "", "", "",
         Paragraph(escape(_money(ledger.opening_balance)), styles["banner_amount"])],
        [Paragraph(h, styles["head"]) for h in COLUMN_HEADERS],
    ]
    for cells in ledger_table_rows(ledger):
        table_data.append(
            [Paragraph(escape(c), styles["center"]) for c in cells[:5]]
            + [Paragraph(escape(c), styles["amount"]) for c in cells[5:]]
        )

    t = Table(table_data, colWidths=COL_WIDTHS, repeatRows=2)
    t.setStyle(TableStyle([
        ("SPAN", (0, 0), (5, 0)),
        ("BACKGROUND", (0, 0), (-1, 0), BRAND_BLUE),
        ("LEFTPADDING", (0, 0), (0, 0), 4 * mm),
        ("RIGHTPADDING", (-1, 0), (-1, 0), 4 * mm),
        ("BACKGROUND", (0, 1), (-1, 1), HEADER_NAVY),
        ("GRID", (0, 0), (-1, -1), 0.3, GRID_GREY),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 1), (-1, -1), 2 * mm),
        ("RIGHTPADDING", (0, 1), (-1, -1), 2 * mm),
        ("TOPPADDING", (0, 0), (-1, -1), 2 * mm),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2 * mm),
    ]))
    t.hAlign = "LEFT"
    return t


def _total_table(ledger, styles):
    t = Table([[
        "", "", "", "",
        Paragraph("Total Balance Due", styles["total"]), "",
        Paragraph(escape(_money(ledger.closing_balance)), styles["total_amount"]),
    ]], colWidths=COL_WIDTHS)
    t.setStyle(TableStyle([
        ("SPAN", (0, 0), (3, 0)),
        ("SPAN", (4, 0), (5, 0)),
        ("BACKGROUND", (4, 0), (6, 0), TOTAL_GREEN),
        ("BOX", (4, 0), (5, 0), 0.3, GRID_GREY),
        ("BOX", (6, 0), (6, 0), 0.3, GRID_GREY),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 2 * mm),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2 * mm),
    ]))
    t.hAlign = "LEFT"
    return t


def generate_statement_pdf(file_transactions, manual_transactions, customer_name, config):
    """Render the statement of account for one customer.

    Returns the PDF bytes and the file name; storing them is up to the caller.
    """
    if not customer_name:
        raise RenderTargetMissing()

    ledger = build_ledger(tuple(file_transactions), tuple(manual_transactions), customer_name, config)

    buffer = io.BytesIO()
    page_size = A4
    width, height = page_size
    left_margin = right_margin = 14 * mm
    top_margin = 10 * mm
    bottom_margin = 18 * mm
    usable_width = width - left_margin - right_margin

    doc = SimpleDocTemplate(
        buffer,
        pagesize=page_size,
        leftMargin=left_margin,
        rightMargin=right_margin,
        topMargin=top_margin,
        bottomMargin=bottom_margin,
        title=f"Statement of Account - {customer_name}",
        invariant=1,
    )
    styles = _styles()

    story = []
    logo = _logo_flowable(config.logo)
    if logo is not None:
        story.append(logo)
    else:
        story.append(Spacer(1, 8 * mm))
        story.append(Paragraph(escape(conf.get("SOA_COMPANY_TITLE")), styles["title"]))
    story.append(Spacer(1, 8 * mm))
    story.append(_info_block(customer_name, config, styles, usable_width))
    story.append(Spacer(1, 6 * mm))
    story.append(_ledger_table(ledger, styles))
    story.append(Spacer(1, 4 * mm))
    story.append(_total_table(ledger, styles))
    story.append(Spacer(1, 12 * mm))
    story.append(Paragraph(escape(conf.get("SOA_FOOTER_NOTE")), styles["footer"]))

    def _draw_page_number(canvas, doc_obj):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(LABEL_GREY)
        canvas.drawCentredString(width / 2.0, 10 * mm, f"Page {doc_obj.page}")
        canvas.restoreState()

    doc.build(story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)

    logger.info(
        "Rendered statement for %s: %d rows, closing balance %s",
        customer_name, len(ledger.rows), ledger.closing_balance,
    )
    return RenderedStatement(
        content=buffer.getvalue(),
        file_name=statement_file_name(customer_name, config.end_date),
        ledger=ledger,
    )
