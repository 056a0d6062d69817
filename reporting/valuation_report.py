"""
Informe de Valoración - PDF Report

Generates the downloadable PDF version of a saved valuation from the
public report page. Uses ReportLab for deterministic PDF generation.

Output Structure (single page):
1. Agency header
2. Property address and report date
3. Estimated value with conservative / optimistic range
4. Property data
5. Characteristics (extras, finish quality)
6. Disclaimer
"""

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    HRFlowable,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from core.storage import AgencyClient, SavedValuation
from utils.formatting import format_area, format_price


# =============================================================================
# Report Generation Result Types
# =============================================================================

@dataclass
class ReportSuccess:
    """Returned when PDF generation succeeds."""
    path: Path
    size_bytes: int


DISCLAIMER_LINES = (
    "Esta valoración es orientativa y está basada en datos del mercado.",
    "Para una tasación oficial, consulte con un profesional.",
)


# =============================================================================
# Color Palette
# =============================================================================

class Palette:
    """
    Print-friendly palette.
    ACCENT is replaced by the agency's primary colour when it has one.
    """
    BLACK = colors.Color(0.07, 0.08, 0.09)
    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    GRAY = colors.Color(0.42, 0.45, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    PALE_GRAY = colors.Color(0.96, 0.96, 0.97)
    WHITE = colors.white

    ACCENT = colors.Color(0.07, 0.45, 0.83)


def accent_color(client: Optional[AgencyClient]) -> colors.Color:
    """Agency primary colour, or the default accent if missing or invalid."""
    if client and client.primary_color:
        try:
            return colors.HexColor(client.primary_color)
        except ValueError:
            pass
    return Palette.ACCENT


# =============================================================================
# Style Configuration
# =============================================================================

def get_report_styles(accent: colors.Color = Palette.ACCENT) -> dict:
    """Paragraph styles for the valuation report."""
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name='AgencyName',
        parent=styles['Normal'],
        fontSize=11,
        leading=14,
        textColor=accent,
        fontName='Helvetica-Bold',
        alignment=TA_LEFT,
    ))

    styles.add(ParagraphStyle(
        name='AgentLine',
        parent=styles['Normal'],
        fontSize=8.5,
        leading=11,
        textColor=Palette.GRAY,
        fontName='Helvetica',
    ))

    styles.add(ParagraphStyle(
        name='ReportTitle',
        parent=styles['Normal'],
        fontSize=20,
        leading=26,
        textColor=Palette.BLACK,
        fontName='Helvetica-Bold',
        spaceAfter=2*mm,
    ))

    styles.add(ParagraphStyle(
        name='Address',
        parent=styles['Normal'],
        fontSize=11,
        leading=15,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica',
    ))

    styles.add(ParagraphStyle(
        name='ValueLabel',
        parent=styles['Normal'],
        fontSize=8.5,
        leading=11,
        textColor=Palette.GRAY,
        fontName='Helvetica',
        alignment=TA_CENTER,
    ))

    styles.add(ParagraphStyle(
        name='ValueMain',
        parent=styles['Normal'],
        fontSize=28,
        leading=34,
        textColor=accent,
        fontName='Helvetica-Bold',
        alignment=TA_CENTER,
    ))

    styles.add(ParagraphStyle(
        name='SectionTitle',
        parent=styles['Normal'],
        fontSize=13,
        leading=17,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica-Bold',
        spaceBefore=16,
        spaceAfter=8,
    ))

    styles.add(ParagraphStyle(
        name='Body',
        parent=styles['Normal'],
        fontSize=9.5,
        leading=13,
        textColor=Palette.CHARCOAL,
        fontName='Helvetica',
    ))

    styles.add(ParagraphStyle(
        name='Disclaimer',
        parent=styles['Normal'],
        fontSize=7.5,
        leading=10,
        textColor=Palette.GRAY,
        fontName='Helvetica',
        alignment=TA_CENTER,
    ))

    return styles


# =============================================================================
# Report Generator Class
# =============================================================================

class ValuationReportGenerator:
    """
    Generates the PDF report for a saved valuation.

    Usage:
        generator = ValuationReportGenerator()
        pdf_bytes = generator.generate_to_buffer(valuation, client)
    """

    PAGE_WIDTH, PAGE_HEIGHT = A4
    MARGIN_LEFT = 18*mm
    MARGIN_RIGHT = 18*mm
    MARGIN_TOP = 18*mm
    MARGIN_BOTTOM = 20*mm

    OUTPUT_DIR = Path("reports")

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir else self.OUTPUT_DIR

    def generate_report(
        self,
        valuation: SavedValuation,
        client: Optional[AgencyClient] = None,
    ) -> ReportSuccess:
        """
        Write the PDF for a valuation to the output directory.

        Returns:
            ReportSuccess with the file path
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / report_filename(valuation)

        pdf_bytes = self.generate_to_buffer(valuation, client)
        output_path.write_bytes(pdf_bytes)

        return ReportSuccess(path=output_path, size_bytes=len(pdf_bytes))

    def generate_to_buffer(
        self,
        valuation: SavedValuation,
        client: Optional[AgencyClient] = None,
    ) -> bytes:
        """Generate PDF and return as bytes (for testing or streaming)."""
        buffer = BytesIO()
        self._build_document(valuation, client, buffer)
        return buffer.getvalue()

    def _build_document(
        self,
        valuation: SavedValuation,
        client: Optional[AgencyClient],
        buffer: BytesIO,
    ) -> None:
        accent = accent_color(client)
        self.styles = get_report_styles(accent)
        self._accent = accent

        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.MARGIN_LEFT,
            rightMargin=self.MARGIN_RIGHT,
            topMargin=self.MARGIN_TOP,
            bottomMargin=self.MARGIN_BOTTOM,
            title=f"Informe de valoración - {valuation.address}",
            author=(client.agency_name if client else "") or "Valorador Online",
            subject="Valoración de inmueble",
        )

        story = []
        story.extend(self._build_header(client))
        story.extend(self._build_title(valuation))
        story.extend(self._build_value_block(valuation))
        story.extend(self._build_property_data(valuation))
        story.extend(self._build_characteristics(valuation))
        story.extend(self._build_disclaimer())

        doc.build(story, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)

    # =========================================================================
    # Page Drawing
    # =========================================================================

    def _draw_footer(self, canvas_obj: canvas.Canvas, doc):
        canvas_obj.saveState()
        canvas_obj.setFont('Helvetica', 7)
        canvas_obj.setFillColor(Palette.GRAY)
        canvas_obj.drawString(
            self.MARGIN_LEFT,
            self.MARGIN_BOTTOM - 10*mm,
            "VALORADOR ONLINE",
        )
        canvas_obj.drawRightString(
            self.PAGE_WIDTH - self.MARGIN_RIGHT,
            self.MARGIN_BOTTOM - 10*mm,
            f"{doc.page}",
        )
        canvas_obj.restoreState()

    # =========================================================================
    # Sections
    # =========================================================================

    def _build_header(self, client: Optional[AgencyClient]) -> list:
        """Agency name and agent contact line."""
        if client is None:
            return []

        elements = [Paragraph(escape(client.agency_name or client.name or ""), self.styles['AgencyName'])]
        contact = [client.agent_name, client.phone, client.email]
        line = " · ".join(escape(c) for c in contact if c)
        if line:
            elements.append(Paragraph(line, self.styles['AgentLine']))
        elements.append(Spacer(1, 4*mm))
        elements.append(HRFlowable(width="100%", thickness=0.5, color=Palette.LIGHT_GRAY))
        elements.append(Spacer(1, 6*mm))
        return elements

    def _build_title(self, valuation: SavedValuation) -> list:
        attrs = valuation.attributes
        location = ", ".join(p for p in (attrs.postal_code, attrs.city) if p)

        elements = [Paragraph("Informe de valoración", self.styles['ReportTitle'])]
        elements.append(Paragraph(escape(valuation.address or "Dirección no disponible"), self.styles['Address']))
        if location:
            elements.append(Paragraph(escape(location), self.styles['AgentLine']))
        elements.append(Paragraph(
            f"Fecha: {valuation.created_at.strftime('%d/%m/%Y')}",
            self.styles['AgentLine'],
        ))
        elements.append(Spacer(1, 8*mm))
        return elements

    def _build_value_block(self, valuation: SavedValuation) -> list:
        """Estimated value with the range underneath."""
        elements = [
            Paragraph("VALOR ESTIMADO", self.styles['ValueLabel']),
            Paragraph(format_price(valuation.estimated_value_recommended), self.styles['ValueMain']),
            Spacer(1, 4*mm),
        ]

        rows = [
            ["Conservador", "Precio por m²", "Optimista"],
            [
                format_price(valuation.estimated_value_min),
                f"{format_price(valuation.price_per_m2)}/m²",
                format_price(valuation.estimated_value_max),
            ],
        ]
        table = Table(rows, colWidths=[58*mm, 58*mm, 58*mm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica'),
            ('FONTNAME', (0, 1), (-1, 1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 8),
            ('FONTSIZE', (0, 1), (-1, 1), 12),
            ('TEXTCOLOR', (0, 0), (-1, 0), Palette.GRAY),
            ('TEXTCOLOR', (0, 1), (-1, 1), Palette.CHARCOAL),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('BACKGROUND', (0, 0), (-1, -1), Palette.PALE_GRAY),
            ('TOPPADDING', (0, 0), (-1, -1), 3*mm),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 3*mm),
        ]))
        elements.append(table)

        if valuation.confidence:
            elements.append(Spacer(1, 3*mm))
            elements.append(Paragraph(
                f"Fiabilidad de la estimación: {valuation.confidence}%",
                self.styles['ValueLabel'],
            ))
        return elements

    def _build_property_data(self, valuation: SavedValuation) -> list:
        attrs = valuation.attributes
        elements = [Paragraph("Datos de la propiedad", self.styles['SectionTitle'])]

        rows = [
            ["Superficie", format_area(attrs.surface) if attrs.surface else "-"],
            ["Habitaciones", _or_dash(attrs.bedrooms)],
            ["Baños", _or_dash(attrs.bathrooms)],
            ["Año de construcción", _or_dash(attrs.construction_year)],
            ["Tipo de inmueble", attrs.property_type or "-"],
            ["Tipo de edificio", attrs.building_type or "-"],
            ["Referencia catastral", attrs.cadastral_reference or "-"],
        ]

        table = Table(rows, colWidths=[60*mm, 114*mm])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica'),
            ('FONTNAME', (1, 0), (1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('TEXTCOLOR', (0, 0), (0, -1), Palette.GRAY),
            ('TEXTCOLOR', (1, 0), (1, -1), Palette.CHARCOAL),
            ('LINEBELOW', (0, 0), (-1, -2), 0.5, Palette.LIGHT_GRAY),
            ('TOPPADDING', (0, 0), (-1, -1), 2.5*mm),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2.5*mm),
        ]))
        elements.append(table)
        return elements

    def _build_characteristics(self, valuation: SavedValuation) -> list:
        attrs = valuation.attributes
        if not attrs.extras and attrs.finish_quality is None:
            return []

        elements = [Paragraph("Características", self.styles['SectionTitle'])]
        if attrs.finish_quality is not None:
            elements.append(Paragraph(
                f"<b>Estado:</b> {escape(attrs.finish_quality.label)}",
                self.styles['Body'],
            ))
        if attrs.extras:
            elements.append(Paragraph(
                f"<b>Extras:</b> {escape(', '.join(attrs.extras))}",
                self.styles['Body'],
            ))
        return elements

    def _build_disclaimer(self) -> list:
        elements = [Spacer(1, 12*mm), HRFlowable(width="100%", thickness=0.5, color=Palette.LIGHT_GRAY)]
        elements.append(Spacer(1, 4*mm))
        for line in DISCLAIMER_LINES:
            elements.append(Paragraph(line, self.styles['Disclaimer']))
        return elements


def _or_dash(value) -> str:
    return str(value) if value else "-"


def report_filename(valuation: SavedValuation) -> str:
    return f"valoracion-{valuation.report_token}.pdf"


# =============================================================================
# Convenience Function
# =============================================================================

def generate_report(
    valuation: SavedValuation,
    client: Optional[AgencyClient] = None,
    output_dir: Optional[Path] = None,
) -> ReportSuccess:
    """
    Generate the PDF report for a saved valuation.

    Example:
        result = generate_report(valuation, client)
        print(f"Report generated: {result.path}")
    """
    generator = ValuationReportGenerator(output_dir=output_dir)
    return generator.generate_report(valuation, client)
