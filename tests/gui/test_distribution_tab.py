"""Widget tests for the distribution tab."""

from datetime import datetime, timezone

import pytest
from PySide6.QtCore import Qt

from board_toolkit.distribution.config import DistributionConfig
from board_toolkit.distribution.controller import DistributionController
from board_toolkit.distribution.session import SessionPhase
from board_toolkit.gui.widgets.distribution_tab import DistributionTab

FIXED = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def controller(repo):
    return DistributionController(repo, DistributionConfig(clock=lambda: FIXED))


@pytest.fixture
def tab(qtbot, controller):
    widget = DistributionTab(controller, confirm_commit=False)
    qtbot.addWidget(widget)
    return widget


def _fetch(tab, subject="k1"):
    tab.exam_input.setText("x1")
    tab.stage_input.setText("s1")
    tab.subject_input.setText(subject)
    tab.fetch_btn.click()


def _select_center(qtbot, tab):
    tab.pool_tree.topLevelItem(0).setCheckState(0, Qt.CheckState.Checked)
    qtbot.waitUntil(lambda: len(tab._count_spins) == 2)


def _add_examiners(tab, count):
    for index in range(count):
        tab.examiner_combo.setCurrentIndex(index)
        tab.add_examiner_btn.click()


class TestDistributionTab:

    def test_initial_when_no_filters_then_actions_disabled(self, tab):
        assert not tab.fetch_btn.isEnabled()
        assert not tab.commit_btn.isEnabled()
        assert tab.pool_group.isHidden()

    def test_fetch_when_filters_entered_then_tree_and_examiners_loaded(self, tab, controller):
        _fetch(tab)
        assert controller.state.phase is SessionPhase.POPULATED
        assert tab.pool_tree.topLevelItemCount() == 1
        center_item = tab.pool_tree.topLevelItem(0)
        assert center_item.childCount() == 2
        assert center_item.text(1) == "10"
        assert center_item.isExpanded()
        assert tab.examiner_combo.count() == 3
        assert not tab.pool_group.isHidden()

    def test_fetch_when_nothing_left_then_panel_hidden_and_status_shown(self, tab):
        _fetch(tab, subject="none")
        assert tab.pool_group.isHidden()
        assert "No scripts left" in tab.status_label.text()

    def test_check_center_when_clicked_then_all_institutions_selected(self, qtbot, tab, controller):
        _fetch(tab)
        _select_center(qtbot, tab)
        assert controller.state.total_selected == 10
        assert tab.select_all_check.isChecked()
        assert "Selected: 10" in tab.summary_label.text()

    def test_count_spin_when_lowered_then_selection_partial(self, qtbot, tab, controller):
        _fetch(tab)
        _select_center(qtbot, tab)
        tab._count_spins["m1"].setValue(3)
        assert controller.state.selections["m1"].selected_count == 3
        assert "Selected: 7" in tab.summary_label.text()
        assert tab.pool_tree.topLevelItem(0).checkState(0) == Qt.CheckState.Unchecked

    def test_select_all_when_clicked_then_every_visible_institution_selected(self, qtbot, tab, controller):
        _fetch(tab)
        tab.select_all_check.click()
        assert controller.state.total_selected == 10
        qtbot.waitUntil(lambda: len(tab._count_spins) == 2)

    def test_distribute_and_commit_when_balanced_then_batch_recorded(self, qtbot, tab, controller, repo):
        _fetch(tab)
        _select_center(qtbot, tab)
        _add_examiners(tab, 2)
        assert tab.bucket_table.rowCount() == 2
        assert not tab.commit_btn.isEnabled()

        tab.distribute_btn.click()
        assert [spin.value() for spin in tab._bucket_spins.values()] == [5, 5]
        assert tab.commit_btn.isEnabled()

        tab.commit_btn.click()
        assert len(repo.batches) == 1
        assert controller.state.pool.is_empty
        assert tab.pool_tree.topLevelItemCount() == 0
        assert "Distributed 10 scripts" in tab.console.plain_text()

    def test_bucket_spin_when_mismatched_then_commit_disabled(self, qtbot, tab, controller):
        _fetch(tab)
        _select_center(qtbot, tab)
        _add_examiners(tab, 1)
        tab._bucket_spins["t1"].setValue(8)
        assert controller.state.total_allocated == 8
        assert not tab.commit_btn.isEnabled()
        assert "must match" in tab.status_label.text()

    def test_remove_examiner_when_clicked_then_row_removed(self, qtbot, tab, controller):
        _fetch(tab)
        _add_examiners(tab, 2)
        tab.bucket_table.setCurrentCell(0, 0)
        tab.remove_examiner_btn.click()
        assert [b.target_id for b in controller.state.buckets] == ["t2"]
        assert tab.bucket_table.rowCount() == 1

    def test_reset_when_clicked_then_allocation_cleared(self, qtbot, tab, controller):
        _fetch(tab)
        _select_center(qtbot, tab)
        _add_examiners(tab, 1)
        tab.reset_btn.click()
        assert controller.state.selections == {}
        assert controller.state.buckets == ()
        assert tab.bucket_table.rowCount() == 0

    def test_start_over_when_clicked_then_inputs_and_session_cleared(self, tab, controller):
        _fetch(tab)
        tab.start_over_btn.click()
        assert controller.state.phase is SessionPhase.IDLE
        assert tab.exam_input.text() == ""
        assert tab.examiner_combo.count() == 0
        assert not tab.fetch_btn.isEnabled()
