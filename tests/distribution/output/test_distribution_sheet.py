"""
Tests for the distribution sheet PDF.
"""

import logging
from dataclasses import replace

from board_toolkit.core.models.buckets import AllocationBucket
from board_toolkit.distribution.commit import CommitPlan, plan_commit
from board_toolkit.distribution.output.sheet import (
    _slice_lines,
    render_distribution_sheet,
    resolve_unicode_font,
)
from board_toolkit.distribution.pool import build_pool
from board_toolkit.distribution.selection import toggle_exam_center

STAMP = "2024-05-01T10:00:00+00:00"


def _plan(scripts, context, *counts):
    pool = build_pool(scripts)
    selections = toggle_exam_center({}, pool.centers["c1"], True)
    buckets = tuple(
        AllocationBucket(f"t{i}", f"Examiner {i}", f"E{i}", count) for i, count in enumerate(counts, start=1)
    )
    return plan_commit(selections, buckets, context, STAMP)


class TestDistributionSheet:

    def test_render_when_plan_then_pdf_written(self, sample_scripts, context, tmp_path):
        output = tmp_path / "out" / "sheet.pdf"
        pages = render_distribution_sheet(_plan(sample_scripts, context, 5, 5), output)
        assert pages == 1
        assert output.read_bytes().startswith(b"%PDF")

    def test_render_when_many_slices_then_breaks_pages(self, script_factory, context, tmp_path):
        scripts = [script_factory(f"e{n}", n) for n in range(1, 81)]
        plan = _plan(scripts, context, *([1] * 80))
        pages = render_distribution_sheet(plan, tmp_path / "long.pdf", title="Long Sheet")
        assert pages > 1

    def test_render_when_empty_plan_then_single_page(self, context, tmp_path):
        plan = CommitPlan(context=context, slices=(), commands=())
        assert render_distribution_sheet(plan, tmp_path / "empty.pdf") == 1

    def test_slice_lines_when_called_then_lists_rolls_and_institutions(self, sample_scripts, context):
        plan = _plan(sample_scripts, context, 4, 6)
        heading, center, institutions, count, rolls = _slice_lines(plan.slices[1])
        assert heading == "Examiner 2 (E2)"
        assert center == "Exam center: c1"
        assert institutions == "Institutions: m1, m2"
        assert count == "Scripts: 6"
        assert rolls == "Roll numbers: 105, 106, 201, 202, 203, 204"


class TestSheetFonts:

    BENGALI_NAME = "মোহাম্মদ করিম"

    def _bengali_slice(self, sample_scripts, context):
        plan = _plan(sample_scripts, context, 10)
        piece = plan.slices[0]
        return replace(piece, bucket=replace(piece.bucket, display_name=self.BENGALI_NAME))

    def test_slice_lines_when_no_unicode_font_then_target_id_printed(self, sample_scripts, context):
        heading = _slice_lines(self._bengali_slice(sample_scripts, context), unicode_font=False)[0]
        assert heading == "t1 (E1)"

    def test_slice_lines_when_unicode_font_then_name_kept(self, sample_scripts, context):
        heading = _slice_lines(self._bengali_slice(sample_scripts, context), unicode_font=True)[0]
        assert heading == f"{self.BENGALI_NAME} (E1)"

    def test_resolve_when_font_missing_then_none_and_warning(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            assert resolve_unicode_font(tmp_path / "missing.ttf") is None
        assert "Cannot use sheet font" in caplog.text

    def test_render_when_configured_font_unusable_then_pdf_still_written(self, sample_scripts, context, tmp_path):
        bad_font = tmp_path / "broken.ttf"
        bad_font.write_bytes(b"not a font")
        plan = _plan(sample_scripts, context, 10)
        bucket = replace(plan.slices[0].bucket, display_name=self.BENGALI_NAME)
        plan = replace(plan, slices=(replace(plan.slices[0], bucket=bucket),))
        output = tmp_path / "bn.pdf"
        assert render_distribution_sheet(plan, output, font_path=bad_font) == 1
        assert output.read_bytes().startswith(b"%PDF")
