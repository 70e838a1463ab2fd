import io
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdf_canvas
from pypdf import PdfReader, PdfWriter
from xhtml2pdf import pisa

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


class PdfRenderError(RuntimeError):
    pass


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml")),
    )


def render_template_html(template_name: str, **context) -> str:
    if not (TEMPLATE_DIR / template_name).exists():
        raise PdfRenderError(f"Template {template_name} is missing")
    return _environment().get_template(template_name).render(**context)


def read_template_text(template_name: str) -> str:
    template_path = TEMPLATE_DIR / template_name
    if not template_path.exists():
        raise PdfRenderError(f"Template {template_name} is missing")
    return template_path.read_text(encoding="utf-8")


def render_html_to_pdf(html_content: str) -> bytes:
    output = io.BytesIO()
    result = pisa.CreatePDF(src=html_content, dest=output, encoding="utf-8")
    if getattr(result, "err", 0):
        raise PdfRenderError("Failed to render PDF from HTML")
    output.seek(0)
    return output.read()


def apply_page_footer(pdf_bytes: bytes, footer_prefix: str = "Page", note: Optional[str] = None) -> bytes:
    """Stamp ``Page N`` (and an optional note) at the bottom of every page."""
    base_reader = PdfReader(io.BytesIO(pdf_bytes))
    writer = PdfWriter()

    for index, base_page in enumerate(base_reader.pages, start=1):
        width = float(base_page.mediabox.width)
        height = float(base_page.mediabox.height)
        stamp_buffer = io.BytesIO()
        stamp_canvas = pdf_canvas.Canvas(stamp_buffer, pagesize=(width, height))
        stamp_canvas.setFont("Times-Roman", 10)
        stamp_canvas.drawCentredString(width / 2.0, 10 * mm, f"{footer_prefix} {index}")
        if note:
            stamp_canvas.setFont("Times-Italic", 8)
            stamp_canvas.drawRightString(width - 12 * mm, 10 * mm, note)
        stamp_canvas.save()

        stamp_buffer.seek(0)
        stamp_page = PdfReader(stamp_buffer).pages[0]
        base_page.merge_page(stamp_page)
        writer.add_page(base_page)

    out = io.BytesIO()
    writer.write(out)
    out.seek(0)
    return out.read()
