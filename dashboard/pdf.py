from __future__ import annotations  # Printable PDF report for one completed interview

import os
from datetime import datetime
from typing import Any, List, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .views import CandidateDetail, TranscriptEntry

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (79, 70, 229)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 244, 255)  # Highlight background
BAND_COLORS = {  # Score band palette
    "strong": (22, 163, 74),
    "average": (202, 138, 4),
    "weak": (220, 38, 38),
}


def _effective_width(pdf: FPDF) -> float:
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


class ReportPDF(FPDF):  # PDF with banner header and paginated footer
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.header_title = "Interview Report"
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_system_font(self) -> None:
        if not (os.path.exists(DEJAVU_SANS) and os.path.exists(DEJAVU_SANS_BOLD)):
            return
        self.add_font("DejaVu", "", DEJAVU_SANS)
        self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    def clean(self, text: Any) -> str:  # Core fonts only cover latin-1
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        value = value.replace("•", "-").replace("—", "-").replace("’", "'")
        return value.encode("latin-1", "replace").decode("latin-1")

    def line_text(self, width: float, height: float, text: Any, *, align: str = "L") -> None:
        self.cell(width, height, self.clean(text), align=align, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def paragraph(self, height: float, text: Any) -> None:
        self.set_x(self.l_margin)
        self.multi_cell(_effective_width(self), height, self.clean(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def header(self) -> None:
        if self.page_no() != 1:
            return
        self.set_fill_color(*ACCENT)
        self.rect(0, 0, self.w, 22, style="F")
        self.set_text_color(255, 255, 255)
        self.set_font(self.font_bold, "B", 16)
        self.set_xy(self.l_margin, 7)
        self.line_text(_effective_width(self), 8, self.header_title)
        self.set_text_color(*TEXT)
        self.set_y(28)

    def footer(self) -> None:
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_bold, "B", 13)
    pdf.line_text(0, 9, title)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Label/value pairs in two columns
    col = _effective_width(pdf) / 2.0
    for idx in range(0, len(rows), 2):
        pair = rows[idx : idx + 2]
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        for label, _ in pair:
            pdf.cell(col, 6, pdf.clean(label), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.ln(6)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_bold, "B", 11)
        for _, value in pair:
            pdf.cell(col, 6, pdf.clean(value), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.ln(8)


def _score_box(pdf: ReportPDF, detail: CandidateDetail) -> None:
    top = pdf.get_y()
    width = _effective_width(pdf)
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, top, width, 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, top + 5)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.cell(width / 2, 6, "Final Score", new_x=XPos.RIGHT, new_y=YPos.TOP)
    pdf.set_text_color(*BAND_COLORS[detail.score_band])
    pdf.set_font(pdf.font_bold, "B", 14)
    score = "-" if detail.final_score is None else f"{detail.final_score}%"
    pdf.cell(width / 2 - 12, 6, score, align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_y(top + 20)
    pdf.set_text_color(*TEXT)


def _render_entry(pdf: ReportPDF, entry: TranscriptEntry) -> None:
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.paragraph(5.5, f"Q{entry.number} ({entry.difficulty}): {entry.question}")
    pdf.set_text_color(60, 60, 60)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.paragraph(5.5, f"A: {entry.answer}")
    verdict = "Pass" if entry.passed else "Below bar"
    score = "-" if entry.score is None else f"{entry.score}/100"
    pdf.set_text_color(*BAND_COLORS["strong" if entry.passed else "weak"])
    pdf.set_font(pdf.font_bold, "B", 9)
    pdf.paragraph(5, f"Score: {score} ({verdict})")
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 9)
    pdf.paragraph(5, f"Feedback: {entry.feedback or '-'}")
    pdf.set_draw_color(*RULE)
    y = pdf.get_y() + 1
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.set_y(y + 3)
    pdf.set_text_color(*TEXT)


def generate_candidate_report_pdf(detail: CandidateDetail, *, generated_at: datetime | None = None) -> bytes:
    """Render the dashboard detail view of a completed interview as PDF bytes."""

    pdf = ReportPDF()
    pdf.use_system_font()
    pdf.alias_nb_pages()
    pdf.header_title = f"Interview Details: {detail.name}"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    stamp = (generated_at or datetime.now()).strftime("%d %b %Y, %H:%M")
    _section_title(pdf, "Candidate Profile")
    _meta_block(
        pdf,
        [
            ("Name", detail.name),
            ("Email", detail.email),
            ("Phone", detail.phone),
            ("Generated", stamp),
        ],
    )

    _section_title(pdf, "Final Assessment")
    _score_box(pdf, detail)
    pdf.set_font(pdf.font_regular, "", 11)
    pdf.paragraph(6, detail.summary or "-")
    pdf.ln(2)

    _section_title(pdf, "Interview Transcript")
    if not detail.transcript:
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.paragraph(6, "No questions were asked in this session.")
    for entry in detail.transcript:
        _render_entry(pdf, entry)

    return bytes(pdf.output())


__all__ = ["ReportPDF", "generate_candidate_report_pdf"]
