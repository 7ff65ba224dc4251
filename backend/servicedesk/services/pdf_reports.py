"""
PDF rendering for single service orders and filtered reports.

Documents are laid out with ReportLab platypus flowables on A4 pages. Each
order in a report is wrapped in ``KeepTogether`` so a block that does not fit
in the space left on the current page starts on the next one.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    HRFlowable,
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from servicedesk.models.ordem_servico import STATUS_COLORS, STATUS_LABELS, StatusOrdem
from servicedesk.schemas.ordem_servico import OrdemServicoResponse, RelatorioFilters
from servicedesk.utils.dates import MONTH_NAMES, format_iso_as_br

logger = logging.getLogger(__name__)

PAGE_MARGIN = 50  # points
TITLE_COLOR = colors.HexColor("#2563eb")
TEXT_COLOR = colors.HexColor("#1e293b")
MUTED_COLOR = colors.HexColor("#64748b")
DIVIDER_COLOR = colors.HexColor("#e2e8f0")
STATS_FILL = colors.HexColor("#dbeafe")
STATS_BORDER = colors.HexColor("#3b82f6")
STATS_TITLE = colors.HexColor("#1e40af")
STATS_VALUE = colors.HexColor("#1e3a8a")


def status_label(status: str) -> str:
    try:
        return STATUS_LABELS[StatusOrdem(status)]
    except ValueError:
        return status


def status_color(status: str) -> colors.Color:
    try:
        return colors.HexColor(STATUS_COLORS[StatusOrdem(status)])
    except ValueError:
        return colors.black


def order_filename(numero_os: int) -> str:
    return f"OS-{numero_os}.pdf"


def report_filename(today: Optional[datetime] = None) -> str:
    today = today or datetime.now()
    return f"Relatorio-OS-{today:%d-%m-%Y}.pdf"


def describe_filters(filters: RelatorioFilters) -> List[str]:
    """Human readable summary lines for the filters applied to a report."""
    lines: List[str] = []

    status = filters.status_filter
    if status is not None:
        lines.append(f"Status: {status.label}")

    if filters.has_range:
        inicio = format_iso_as_br(filters.dataInicio)
        fim = format_iso_as_br(filters.dataFim)
        if inicio and fim:
            lines.append(f"Período: {inicio} até {fim}")
        elif inicio:
            lines.append(f"Período: A partir de {inicio}")
        else:
            lines.append(f"Período: Até {fim}")
    elif filters.has_granular:
        parts = []
        if filters.dia:
            parts.append(f"Dia: {filters.dia}")
        if filters.mes:
            parts.append(f"Mês: {MONTH_NAMES[int(filters.mes)]}")
        if filters.ano:
            parts.append(f"Ano: {filters.ano}")
        lines.append(f"Período: {' / '.join(parts)}")

    if filters.search:
        lines.append(f'Busca: "{filters.search}"')

    return lines


def paragraph_markup(value) -> str:
    """Escape free text for a ``Paragraph``, keeping its line breaks."""
    if value is None or value == "":
        return "-"
    text = escape(str(value)).replace("\r\n", "\n").replace("\r", "\n")
    return text.replace("\n", "<br/>")


class ServiceOrderPdfRenderer:
    """Build PDF documents from formatted service orders."""

    def __init__(self, generated_at: Optional[datetime] = None):
        self.generated_at = generated_at or datetime.now()
        base = getSampleStyleSheet()
        self.styles = {
            "title": ParagraphStyle(
                "Title", parent=base["Title"], fontSize=22, leading=26,
                textColor=TITLE_COLOR, alignment=TA_CENTER,
            ),
            "subtitle": ParagraphStyle(
                "Subtitle", parent=base["Normal"], fontName="Helvetica-Bold",
                fontSize=16, leading=20, textColor=TEXT_COLOR, alignment=TA_CENTER,
            ),
            "centered": ParagraphStyle(
                "Centered", parent=base["Normal"], fontSize=11, leading=14,
                textColor=MUTED_COLOR, alignment=TA_CENTER,
            ),
            "label": ParagraphStyle(
                "Label", parent=base["Normal"], fontSize=9, leading=12, textColor=MUTED_COLOR,
            ),
            "value": ParagraphStyle(
                "Value", parent=base["Normal"], fontSize=10, leading=13, textColor=TEXT_COLOR,
            ),
            "heading": ParagraphStyle(
                "Heading", parent=base["Normal"], fontName="Helvetica-Bold",
                fontSize=11, leading=14, textColor=TEXT_COLOR, spaceAfter=4,
            ),
            "body": ParagraphStyle(
                "Body", parent=base["Normal"], fontSize=10, leading=14,
                textColor=TEXT_COLOR, alignment=TA_LEFT,
            ),
            "order": ParagraphStyle(
                "Order", parent=base["Normal"], fontName="Helvetica-Bold",
                fontSize=13, leading=16, textColor=TEXT_COLOR,
            ),
            "small": ParagraphStyle(
                "Small", parent=base["Normal"], fontSize=9, leading=12, textColor=TEXT_COLOR,
            ),
        }

    # Document plumbing

    def _build(self, story: list, title: str) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN + 10,
            title=title,
            author="Sistema de Ordem de Serviços",
        )
        doc.build(story, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)
        return buffer.getvalue()

    def _draw_footer(self, canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(MUTED_COLOR)
        width, _ = A4
        stamp = self.generated_at.strftime("%d/%m/%Y às %H:%M")
        canvas.drawCentredString(width / 2.0, PAGE_MARGIN / 2.0 + 8, f"Documento gerado em {stamp}")
        canvas.drawRightString(width - PAGE_MARGIN, PAGE_MARGIN / 2.0 - 4, f"Página {doc.page}")
        canvas.restoreState()

    def _divider(self, thickness: float = 1) -> HRFlowable:
        return HRFlowable(
            width="100%", thickness=thickness, color=DIVIDER_COLOR,
            spaceBefore=6, spaceAfter=8,
        )

    def _info_grid(self, rows: Sequence[tuple], label_width: float, value_width: float) -> Table:
        """Two label/value columns side by side."""
        data = []
        for left, right in rows:
            cells = []
            for pair in (left, right):
                if pair is None:
                    cells.extend(["", ""])
                    continue
                label, value = pair
                cells.append(Paragraph(escape(label), self.styles["label"]))
                cells.append(Paragraph(paragraph_markup(value), self.styles["value"]))
            data.append(cells)

        table = Table(data, colWidths=[label_width, value_width, label_width, value_width])
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                    ("TOPPADDING", (0, 0), (-1, -1), 1),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
                ]
            )
        )
        return table

    # Single order

    def render_order(self, ordem: OrdemServicoResponse) -> bytes:
        """One-page summary of a single service order."""
        color = status_color(ordem.status)
        status_style = ParagraphStyle(
            "Status", parent=self.styles["centered"], fontName="Helvetica-Bold",
            fontSize=14, leading=18, textColor=color,
        )

        story = [
            Paragraph("ORDEM DE SERVIÇO", self.styles["title"]),
            Spacer(1, 4),
            Paragraph(f"<u>OS #{ordem.numero_os}</u>", self.styles["subtitle"]),
            Spacer(1, 10),
            Paragraph(f"Status: {escape(status_label(ordem.status))}", status_style),
            Spacer(1, 12),
            self._divider(),
        ]

        rows = [
            (("Solicitante:", ordem.solicitante), ("Data de Abertura:", ordem.data_abertura)),
            (
                ("Unidade:", ordem.ubs),
                ("Data de Fechamento:", ordem.data_fechamento) if ordem.data_fechamento else None,
            ),
            (("Setor:", ordem.setor), None),
        ]
        story.append(self._info_grid(rows, label_width=32 * mm, value_width=52 * mm))
        story.append(self._divider())

        story.append(Paragraph("Descrição do Problema:", self.styles["heading"]))
        story.append(Paragraph(paragraph_markup(ordem.descricao_problema), self.styles["body"]))

        if ordem.servico_realizado:
            story.append(Spacer(1, 8))
            story.append(self._divider())
            story.append(Paragraph("Serviço Realizado:", self.styles["heading"]))
            story.append(Paragraph(paragraph_markup(ordem.servico_realizado), self.styles["body"]))

        pdf = self._build(story, title=f"OS #{ordem.numero_os}")
        logger.info("Rendered PDF for numero_os=%s (%d bytes)", ordem.numero_os, len(pdf))
        return pdf

    # Report

    def _statistics_box(self, total: int) -> Table:
        wording = "Ordem de Serviço" if total == 1 else "Ordens de Serviço"
        title_style = ParagraphStyle(
            "StatsTitle", parent=self.styles["heading"], textColor=STATS_TITLE, fontSize=12,
        )
        value_style = ParagraphStyle(
            "StatsValue", parent=self.styles["subtitle"], textColor=STATS_VALUE,
        )
        box = Table(
            [
                [Paragraph("ESTATÍSTICAS DO PERÍODO", title_style)],
                [Paragraph(f"{total} {wording}", value_style)],
            ],
            colWidths=[A4[0] - 2 * PAGE_MARGIN],
        )
        box.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, -1), STATS_FILL),
                    ("BOX", (0, 0), (-1, -1), 1, STATS_BORDER),
                    ("LEFTPADDING", (0, 0), (-1, -1), 14),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 14),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        return box

    def _order_block(self, ordem: OrdemServicoResponse) -> KeepTogether:
        status_style = ParagraphStyle(
            "BlockStatus", parent=self.styles["small"], fontName="Helvetica-Bold",
            textColor=status_color(ordem.status), alignment=TA_RIGHT,
        )
        header = Table(
            [[
                Paragraph(f"OS #{ordem.numero_os}", self.styles["order"]),
                Paragraph(escape(status_label(ordem.status)), status_style),
            ]],
            colWidths=[(A4[0] - 2 * PAGE_MARGIN) * 0.7, (A4[0] - 2 * PAGE_MARGIN) * 0.3],
        )
        header.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ]
            )
        )

        rows = [
            (("Solicitante:", ordem.solicitante), ("Unidade:", ordem.ubs)),
            (("Setor:", ordem.setor), ("Data Abertura:", ordem.data_abertura)),
        ]
        if ordem.data_fechamento:
            rows.append((None, ("Data Fechamento:", ordem.data_fechamento)))

        parts = [
            header,
            Spacer(1, 4),
            self._info_grid(rows, label_width=28 * mm, value_width=58 * mm),
            Spacer(1, 4),
            Paragraph("<b>Problema:</b>", self.styles["small"]),
            Paragraph(paragraph_markup(ordem.descricao_problema), self.styles["small"]),
        ]
        if ordem.servico_realizado:
            parts.extend(
                [
                    Spacer(1, 4),
                    Paragraph("<b>Serviço Realizado:</b>", self.styles["small"]),
                    Paragraph(paragraph_markup(ordem.servico_realizado), self.styles["small"]),
                ]
            )
        return KeepTogether(parts)

    def render_report(
        self, ordens: Sequence[OrdemServicoResponse], filters: RelatorioFilters
    ) -> bytes:
        """Multi-page report listing every order that matched ``filters``."""
        story = [
            Paragraph("RELATÓRIO DE ORDENS DE SERVIÇO", self.styles["title"]),
            Spacer(1, 4),
            Paragraph(
                f"Relatório gerado em: {self.generated_at:%d/%m/%Y}", self.styles["centered"]
            ),
        ]
        for line in describe_filters(filters):
            story.append(Paragraph(escape(line), self.styles["centered"]))

        if filters.has_range:
            story.append(Spacer(1, 10))
            story.append(self._statistics_box(len(ordens)))
            story.append(Spacer(1, 14))
        else:
            story.append(Spacer(1, 6))
            story.append(Paragraph(f"Total de OS: {len(ordens)}", self.styles["centered"]))
            story.append(Spacer(1, 12))

        for index, ordem in enumerate(ordens):
            story.append(self._order_block(ordem))
            if index < len(ordens) - 1:
                story.append(self._divider(thickness=0.5))

        pdf = self._build(story, title="Relatório de Ordens de Serviço")
        logger.info("Rendered report PDF with %d orders (%d bytes)", len(ordens), len(pdf))
        return pdf


__all__ = [
    "ServiceOrderPdfRenderer",
    "describe_filters",
    "order_filename",
    "report_filename",
    "status_color",
    "status_label",
]
