"""
Module: distribution.output.sheet

Purpose:
    Render a printable distribution sheet for a committed batch: one
    section per examiner listing the exam center, institutions, script
    count and the roll numbers handed out.

Key Functions:
    - render_distribution_sheet(): Write the sheet PDF
    - resolve_unicode_font(): Register a TrueType font for Bengali names

Dependencies:
    - reportlab: PDF generation
    - distribution.commit: CommitPlan / AllocationSlice
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from board_toolkit import __version__
from board_toolkit.distribution.commit import AllocationSlice, CommitPlan

logger = logging.getLogger(__name__)

# Constants
A4_WIDTH, A4_HEIGHT = A4
MARGIN = 50
LINE_HEIGHT = 14
BODY_FONT = "Helvetica"
HEADING_FONT = "Helvetica-Bold"
# Fonts with Bengali glyphs, tried in order when none is configured
UNICODE_FONT_CANDIDATES = (
    Path("/usr/share/fonts/truetype/noto/NotoSansBengali-Regular.ttf"),
    Path("/usr/share/fonts/opentype/noto/NotoSansBengali-Regular.ttf"),
    Path("/usr/share/fonts/truetype/lohit-bengali/Lohit-Bengali.ttf"),
    Path("C:/Windows/Fonts/vrinda.ttf"),
)
BODY_SIZE = 10
HEADING_SIZE = 12
TITLE_SIZE = 16


@lru_cache(maxsize=None)
def _register_font(path: Path) -> Optional[str]:
    """Register a TrueType font with reportlab; None when it cannot be loaded."""
    name = f"Sheet-{path.stem}"
    try:
        pdfmetrics.registerFont(TTFont(name, str(path)))
    except (TTFError, OSError) as e:
        logger.warning(f"Cannot use sheet font {path}: {e}")
        return None
    logger.debug(f"Registered sheet font {name} from {path}")
    return name


def resolve_unicode_font(font_path: Optional[Path] = None) -> Optional[str]:
    """
    Register the font used for lines the base PDF fonts cannot show.

    A configured font is used on its own; otherwise the first installed
    candidate with Bengali glyphs is registered.

    Args:
        font_path: Optional TrueType font file

    Returns:
        Registered font name, or None when no font could be loaded
    """
    if font_path is not None:
        candidates = [Path(font_path)]
    else:
        candidates = [path for path in UNICODE_FONT_CANDIDATES if path.exists()]
    for candidate in candidates:
        name = _register_font(candidate)
        if name is not None:
            return name
    logger.info("No Bengali font available; sheet prints ids for non-Latin names")
    return None


def _fits_base_font(text: str) -> bool:
    try:
        text.encode("cp1252")
    except UnicodeEncodeError:
        return False
    return True


class _SheetWriter:
    """Tracks the cursor and starts new pages as lines run out."""

    def __init__(
        self,
        c: canvas.Canvas,
        title: str,
        subtitle: str,
        unicode_font: Optional[str] = None,
    ) -> None:
        self.c = c
        self.title = title
        self.subtitle = subtitle
        self.unicode_font = unicode_font
        self.pages = 0
        self.y = 0.0
        self._start_page()

    def _start_page(self) -> None:
        self.pages += 1
        self.y = A4_HEIGHT - MARGIN
        self.c.setFont(HEADING_FONT, TITLE_SIZE)
        self.c.drawString(MARGIN, self.y, self.title)
        self.y -= LINE_HEIGHT * 1.5
        self.c.setFont(BODY_FONT, BODY_SIZE)
        self.c.drawString(MARGIN, self.y, self.subtitle)
        self.y -= LINE_HEIGHT * 2
        self._footer()

    def _footer(self) -> None:
        self.c.setFont(BODY_FONT, 8)
        self.c.drawRightString(
            A4_WIDTH - MARGIN, MARGIN / 2,
            f"Page {self.pages} · board_toolkit {__version__}",
        )

    def _ensure_room(self, lines: int) -> None:
        if self.y - lines * LINE_HEIGHT < MARGIN:
            self.c.showPage()
            self._start_page()

    def _font_for(self, text: str, base: str) -> str:
        if self.unicode_font and not _fits_base_font(text):
            return self.unicode_font
        return base

    def heading(self, text: str) -> None:
        self._ensure_room(3)
        self.c.setFont(self._font_for(text, HEADING_FONT), HEADING_SIZE)
        self.c.drawString(MARGIN, self.y, text)
        self.y -= LINE_HEIGHT * 1.3

    def paragraph(self, text: str) -> None:
        width = A4_WIDTH - 2 * MARGIN
        font = self._font_for(text, BODY_FONT)
        for line in simpleSplit(text, font, BODY_SIZE, width) or [""]:
            self._ensure_room(1)
            self.c.setFont(font, BODY_SIZE)
            self.c.drawString(MARGIN, self.y, line)
            self.y -= LINE_HEIGHT

    def gap(self) -> None:
        self.y -= LINE_HEIGHT

    def finish(self) -> None:
        self.c.showPage()
        self.c.save()


def _slice_lines(piece: AllocationSlice, unicode_font: bool = True) -> List[str]:
    bucket = piece.bucket
    examiner = bucket.display_name
    if not examiner or not (unicode_font or _fits_base_font(examiner)):
        examiner = bucket.target_id
    if bucket.display_code and (unicode_font or _fits_base_font(bucket.display_code)):
        examiner = f"{examiner} ({bucket.display_code})"
    rolls = ", ".join(str(roll) for roll in piece.roll_numbers)
    return [
        examiner,
        f"Exam center: {', '.join(piece.exam_center_ids)}",
        f"Institutions: {', '.join(piece.institution_ids)}",
        f"Scripts: {len(piece.scripts)}",
        f"Roll numbers: {rolls}",
    ]


def render_distribution_sheet(
    plan: CommitPlan,
    output_path: Path,
    title: Optional[str] = None,
    font_path: Optional[Path] = None,
) -> int:
    """
    Write a distribution sheet PDF for ``plan``.

    Args:
        plan: The committed plan
        output_path: PDF path; parent directories are created
        title: Optional title (default "Script Distribution Sheet")
        font_path: Optional TrueType font with Bengali glyphs

    Returns:
        Number of pages written

    Example:
        >>> pages = render_distribution_sheet(plan, Path("out/sheet.pdf"))
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    unicode_font = resolve_unicode_font(font_path)

    context = plan.context
    timestamp = plan.commands[0].timestamp if plan.commands else ""
    subtitle = (
        f"Exam {context.exam_id} · Stage {context.stage_id} · Subject {context.subject_id}"
        f" · {plan.total_scripts} scripts · {timestamp}"
    )

    c = canvas.Canvas(str(output_path), pagesize=A4)
    c.setTitle(title or "Script Distribution Sheet")
    writer = _SheetWriter(c, title or "Script Distribution Sheet", subtitle, unicode_font)

    for piece in plan.slices:
        heading, *details = _slice_lines(piece, unicode_font is not None)
        writer.heading(heading)
        for line in details:
            writer.paragraph(line)
        writer.gap()

    if not plan.slices:
        logger.warning("Distribution sheet has no slices")
        writer.paragraph("No scripts were distributed.")

    writer.finish()
    logger.info(f"Wrote distribution sheet with {writer.pages} pages to {output_path}")
    return writer.pages
