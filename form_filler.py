import io
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

import config
from form_config import APARTMENT_PAGE, APPLICANT_PAGES, get_layout_constants
from images import ImageResolutionError, load_image
from layout import Node
from renderers import DocumentRenderer, RenderSettings
from schemas import FormDataset

logger = logging.getLogger(__name__)

# cap height of Helvetica as a fraction of the font size
_CAP_RATIO = 0.7


class TemplateError(RuntimeError):
    pass


@dataclass
class FillResult:
    pdf_bytes: bytes
    pages: List[int]
    warnings: List[str] = field(default_factory=list)
    path: Optional[str] = None


class _OverlayPainter:
    """
    Draws a layout tree onto a reportlab canvas.

    Layout units are scaled to the page width and measured from the top edge;
    the canvas origin is bottom-left.
    """

    def __init__(self, c: canvas.Canvas, scale: float, page_height: float, warnings: List[str]):
        self.c = c
        self.s = scale
        self.page_height = page_height
        self.warnings = warnings

    def _rect(self, x, y, width, height):
        s = self.s
        return x * s, self.page_height - (y + height) * s, width * s, height * s

    def _clip(self, x, y, width, height):
        path = self.c.beginPath()
        path.rect(*self._rect(x, y, width, height))
        self.c.clipPath(path, stroke=0, fill=0)

    def draw(self, node: Node, parent_x: float = 0, parent_y: float = 0):
        x = parent_x + node.x
        y = parent_y + node.y
        style = node.style
        c = self.c

        c.saveState()
        if style.background:
            c.setFillColor(HexColor(style.background))
            c.rect(*self._rect(x, y, node.width, node.height), stroke=0, fill=1)
        if style.border_width:
            # borders sit inside the box, as with CSS border-box sizing
            bw = style.border_width
            c.setStrokeColor(HexColor(style.border_color))
            c.setLineWidth(bw * self.s)
            if style.border_style == "dashed":
                c.setDash(3 * bw * self.s, 2 * bw * self.s)
            c.rect(*self._rect(x + bw / 2, y + bw / 2, node.width - bw, node.height - bw), stroke=1, fill=0)
            c.setDash()
        if node.clip:
            self._clip(x, y, node.width, node.height)

        if node.kind == "image":
            self._draw_image(node, x, y)
        elif node.kind == "checkbox":
            if node.checked:
                self._draw_check(node, x, y)
        elif node.lines:
            self._draw_lines(node, node.lines, x, y, style.effective_line_height)

        for child in node.children:
            self.draw(child, x, y)
        c.restoreState()

    def _draw_lines(self, node: Node, lines, x, y, line_height):
        style = node.style
        c = self.c
        s = self.s
        c.setFillColor(HexColor(style.color))
        c.setFont(style.font_name, style.font_size * s)
        for i, line in enumerate(lines):
            top = y + i * line_height
            baseline = self.page_height - (top + (line_height + style.font_size * _CAP_RATIO) / 2) * s
            if style.align == "center":
                c.drawCentredString((x + node.width / 2) * s, baseline, line)
            elif style.align == "right":
                c.drawRightString((x + node.width) * s, baseline, line)
            else:
                c.drawString(x * s, baseline, line)

    def _draw_check(self, node: Node, x, y):
        c = self.c
        c.setStrokeColor(HexColor(node.style.color))
        c.setLineWidth(1.5 * self.s)
        points = [(0.22, 0.52), (0.42, 0.74), (0.8, 0.28)]
        path = c.beginPath()
        for i, (px, py) in enumerate(points):
            X = (x + px * node.width) * self.s
            Y = self.page_height - (y + py * node.height) * self.s
            if i == 0:
                path.moveTo(X, Y)
            else:
                path.lineTo(X, Y)
        c.drawPath(path, stroke=1, fill=0)

    def _draw_image(self, node: Node, x, y):
        try:
            img = load_image(node.src)
        except ImageResolutionError as e:
            message = f"{node.key or 'image'}: {e}"
            logger.warning("Drawing placeholder for unresolvable image, %s", message)
            self.warnings.append(message)
            self._draw_lines(node, node.lines, x, y, node.height)
            return

        iw, ih = img.size
        if node.style.object_fit == "cover":
            ratio = max(node.width / iw, node.height / ih)
        else:
            ratio = min(node.width / iw, node.height / ih)
        w, h = iw * ratio, ih * ratio
        self._clip(x, y, node.width, node.height)
        self.c.drawImage(
            ImageReader(img),
            *self._rect(x + (node.width - w) / 2, y + (node.height - h) / 2, w, h),
            mask="auto",
        )


def _make_overlay(page_width: float, page_height: float, root: Node, container_width: float,
                  warnings: List[str]) -> bytes:
    packet = io.BytesIO()
    c = canvas.Canvas(packet, pagesize=(page_width, page_height))
    _OverlayPainter(c, page_width / container_width, page_height, warnings).draw(root)
    c.save()
    packet.seek(0)
    return packet.read()


def _merge_overlay(reader: PdfReader, overlays: Dict[int, bytes], dropped: Set[int]) -> bytes:
    """
    overlays: { page_index: overlay_bytes }
    dropped: page indexes left out of the output
    """
    writer = PdfWriter()

    for i, page in enumerate(reader.pages):
        if i in dropped:
            continue
        # merge onto the writer's copy, never the reader's page
        base = writer.add_page(page)
        if i in overlays:
            overlay_reader = PdfReader(io.BytesIO(overlays[i]))
            base.merge_page(overlay_reader.pages[0])

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


class ApplicationPdfFiller:
    """Overlays the composed pages onto the designated pages of the PDF template."""

    def __init__(self, template_path, output_dir, renderer: DocumentRenderer):
        self.template_path = str(template_path)
        self.output_dir = str(output_dir)
        self.renderer = renderer

    def _read_template(self) -> PdfReader:
        if not os.path.exists(self.template_path):
            raise TemplateError(f"PDF template not found: {self.template_path}")
        try:
            reader = PdfReader(self.template_path)
            page_count = len(reader.pages)
        except PdfReadError as e:
            raise TemplateError(f"PDF template could not be read: {e}") from e
        if page_count < APARTMENT_PAGE:
            raise TemplateError(
                f"PDF template has {page_count} page(s), the form needs at least {APARTMENT_PAGE}"
            )
        return reader

    def fill(self, dataset: FormDataset) -> FillResult:
        reader = self._read_template()
        pages = self.renderer.render_pages(dataset)
        container_width = self.renderer.constants.container_width

        warnings: List[str] = []
        overlays = {}
        for page in pages:
            index = page.page_number - 1
            mediabox = reader.pages[index].mediabox
            overlays[index] = _make_overlay(
                float(mediabox.width), float(mediabox.height), page.layout.root, container_width, warnings
            )

        rendered = {page.page_number for page in pages}
        dropped = {number - 1 for number in APPLICANT_PAGES.values() if number not in rendered}
        pdf_bytes = _merge_overlay(reader, overlays, dropped)
        logger.info(
            "Filled template %s: pages %s, dropped %s, %d warning(s)",
            self.template_path,
            sorted(rendered),
            sorted(i + 1 for i in dropped),
            len(warnings),
        )
        return FillResult(pdf_bytes=pdf_bytes, pages=sorted(rendered), warnings=warnings)

    def generate(self, dataset: FormDataset, application_id: str) -> FillResult:
        """Fill the template and write ``<output_dir>/<application_id>.pdf``."""
        result = self.fill(dataset)
        os.makedirs(self.output_dir, exist_ok=True)
        out_path = os.path.join(self.output_dir, f"{application_id}.pdf")
        with open(out_path, "wb") as f:
            f.write(result.pdf_bytes)
        result.path = out_path
        logger.info("Generated PDF: %s", out_path)
        return result


_filler: Optional[ApplicationPdfFiller] = None


def init_pdf_filler(template_path=None, output_dir=None, variant: Optional[str] = None) -> ApplicationPdfFiller:
    global _filler
    renderer = DocumentRenderer(get_layout_constants(variant), RenderSettings())
    _filler = ApplicationPdfFiller(
        template_path or config.TEMPLATE_PDF_PATH,
        output_dir or config.GENERATED_DIR,
        renderer,
    )
    return _filler


def get_pdf_filler() -> ApplicationPdfFiller:
    if _filler is None:
        raise RuntimeError("PDF filler is not initialised; call init_pdf_filler() at start-up")
    return _filler
