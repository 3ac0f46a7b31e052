"""
Distribute Scripts Tab

Filter → Fetch → tick institutions / adjust counts → add examiners →
distribute → commit. Every edit goes through the DistributionController;
the widgets are re-rendered from its SessionState.
"""
import logging
from functools import partial
from typing import Dict, Optional

from PySide6.QtWidgets import (
    QWidget, QHBoxLayout, QVBoxLayout, QLabel, QLineEdit, QPushButton,
    QCheckBox, QComboBox, QGroupBox, QTreeWidget, QTreeWidgetItem,
    QTableWidget, QTableWidgetItem, QSpinBox, QHeaderView, QMessageBox,
    QAbstractItemView,
)
from PySide6.QtCore import Qt, QTimer, Signal

from board_toolkit.core.models.filters import FilterLevel
from board_toolkit.core.models.scripts import ScriptPool
from board_toolkit.distribution.controller import DistributionController
from board_toolkit.distribution.errors import DistributionError
from board_toolkit.distribution.selection import is_all_selected, is_center_fully_selected
from board_toolkit.distribution.session import (
    DistributeEvenly,
    RemoveTarget,
    ResetAll,
    ResetAllocation,
    SessionPhase,
    SetBucketCount,
    SetInstitutionCount,
    SetInstitutionFilter,
    ToggleAllVisible,
    ToggleCenterExpand,
    ToggleExamCenter,
    ToggleInstitution,
)
from board_toolkit.gui.widgets.console_widget import ConsoleWidget

logger = logging.getLogger(__name__)

# Tree item payload: ("center" | "institution", id)
ITEM_ROLE = Qt.ItemDataRole.UserRole
BUCKET_COUNT_MAX = 1_000_000


class DistributionTab(QWidget):
    # Emitted after every re-render with the current SessionState
    state_changed = Signal(object)

    def __init__(
        self,
        controller: DistributionController,
        console: Optional[ConsoleWidget] = None,
        confirm_commit: bool = True,
        parent=None,
    ):
        super().__init__(parent)
        self.controller = controller
        self.console = console or ConsoleWidget()
        self.confirm_commit = confirm_commit

        self._rendering = False
        self._rendered_pool: Optional[ScriptPool] = None
        self._refresh_scheduled = False
        self._count_spins: Dict[str, QSpinBox] = {}
        self._bucket_spins: Dict[str, QSpinBox] = {}

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(12, 12, 12, 12)
        self.layout.setSpacing(12)

        self.layout.addWidget(self._build_filter_row())

        body = QHBoxLayout()
        body.setSpacing(12)
        self.pool_group = self._build_pool_group()
        body.addWidget(self.pool_group, stretch=3)
        body.addWidget(self._build_allocation_group(), stretch=2)
        self.layout.addLayout(body, stretch=1)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        self.layout.addWidget(self.status_label)

        self.refresh()

    # ─────────────────────────────────────────────────────────────────────
    # Layout
    # ─────────────────────────────────────────────────────────────────────

    def _build_filter_row(self) -> QWidget:
        container = QWidget()
        row = QHBoxLayout(container)
        row.setContentsMargins(0, 0, 0, 0)

        self.exam_input = QLineEdit()
        self.exam_input.setPlaceholderText("Exam")
        self.stage_input = QLineEdit()
        self.stage_input.setPlaceholderText("Stage")
        self.subject_input = QLineEdit()
        self.subject_input.setPlaceholderText("Subject")
        self._filter_inputs = {
            FilterLevel.EXAM: self.exam_input,
            FilterLevel.STAGE: self.stage_input,
            FilterLevel.SUBJECT: self.subject_input,
        }
        for level, entry in self._filter_inputs.items():
            entry.editingFinished.connect(partial(self._on_filter_edited, level))
            entry.textChanged.connect(self._update_buttons)
            row.addWidget(entry)

        self.fetch_btn = QPushButton("Fetch Scripts")
        self.fetch_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self.fetch_btn.clicked.connect(self._on_fetch_clicked)
        row.addWidget(self.fetch_btn)

        self.start_over_btn = QPushButton("Start Over")
        self.start_over_btn.clicked.connect(self._on_start_over_clicked)
        row.addWidget(self.start_over_btn)
        return container

    def _build_pool_group(self) -> QGroupBox:
        group = QGroupBox("Ungraded Scripts")
        layout = QVBoxLayout(group)

        controls = QHBoxLayout()
        self.institution_filter = QComboBox()
        self.institution_filter.currentIndexChanged.connect(self._on_institution_filter_changed)
        controls.addWidget(QLabel("Institution:"))
        controls.addWidget(self.institution_filter, stretch=1)
        self.select_all_check = QCheckBox("Select all")
        self.select_all_check.clicked.connect(self._on_select_all_clicked)
        controls.addWidget(self.select_all_check)
        layout.addLayout(controls)

        self.pool_tree = QTreeWidget()
        self.pool_tree.setColumnCount(3)
        self.pool_tree.setHeaderLabels(["Exam center / Institution", "Scripts", "Selected"])
        self.pool_tree.header().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self.pool_tree.itemChanged.connect(self._on_item_changed)
        self.pool_tree.itemExpanded.connect(partial(self._on_item_expanded, True))
        self.pool_tree.itemCollapsed.connect(partial(self._on_item_expanded, False))
        layout.addWidget(self.pool_tree)
        return group

    def _build_allocation_group(self) -> QGroupBox:
        group = QGroupBox("Examiners")
        layout = QVBoxLayout(group)

        picker = QHBoxLayout()
        self.examiner_combo = QComboBox()
        picker.addWidget(self.examiner_combo, stretch=1)
        self.load_examiners_btn = QPushButton("Load")
        self.load_examiners_btn.clicked.connect(self._on_load_examiners_clicked)
        picker.addWidget(self.load_examiners_btn)
        self.add_examiner_btn = QPushButton("Add")
        self.add_examiner_btn.clicked.connect(self._on_add_examiner_clicked)
        picker.addWidget(self.add_examiner_btn)
        layout.addLayout(picker)

        self.bucket_table = QTableWidget(0, 3)
        self.bucket_table.setHorizontalHeaderLabels(["Examiner", "Code", "Scripts"])
        self.bucket_table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self.bucket_table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.bucket_table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.bucket_table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.bucket_table.verticalHeader().setVisible(False)
        layout.addWidget(self.bucket_table)

        self.remove_examiner_btn = QPushButton("Remove Examiner")
        self.remove_examiner_btn.clicked.connect(self._on_remove_examiner_clicked)
        layout.addWidget(self.remove_examiner_btn)

        self.summary_label = QLabel("")
        layout.addWidget(self.summary_label)

        buttons = QHBoxLayout()
        self.distribute_btn = QPushButton("Distribute Evenly")
        self.distribute_btn.clicked.connect(self._on_distribute_clicked)
        buttons.addWidget(self.distribute_btn)
        self.reset_btn = QPushButton("Reset")
        self.reset_btn.clicked.connect(self._on_reset_clicked)
        buttons.addWidget(self.reset_btn)
        self.commit_btn = QPushButton("Commit")
        self.commit_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self.commit_btn.clicked.connect(self._on_commit_clicked)
        buttons.addWidget(self.commit_btn)
        layout.addLayout(buttons)
        return group

    # ─────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────

    def refresh(self) -> None:
        """Re-render every widget from the controller's state."""
        self._refresh_scheduled = False
        state = self.controller.state
        self._rendering = True
        try:
            self.pool_group.setVisible(state.view.panel_visible or state.phase is SessionPhase.FETCHING)
            if state.pool is not self._rendered_pool:
                self._render_institution_filter(state.pool)
                self._rendered_pool = state.pool
            self._render_pool()
            self._render_buckets()
        finally:
            self._rendering = False
        self._render_summary()
        self.state_changed.emit(state)

    def _schedule_refresh(self) -> None:
        # Rebuilding the tree from inside its own signals is deferred to the event loop
        if not self._refresh_scheduled:
            self._refresh_scheduled = True
            QTimer.singleShot(0, self.refresh)

    def _render_institution_filter(self, pool: ScriptPool) -> None:
        selected = self.controller.state.view.institution_filter
        self.institution_filter.clear()
        self.institution_filter.addItem("All institutions", "")
        for _, group in pool.institutions():
            label = group.name or group.institution_id
            if group.code:
                label = f"{label} ({group.code})"
            self.institution_filter.addItem(label, group.institution_id)
        index = self.institution_filter.findData(selected)
        self.institution_filter.setCurrentIndex(max(index, 0))

    def _render_pool(self) -> None:
        state = self.controller.state
        pool = state.visible_pool
        self.pool_tree.clear()
        self._count_spins.clear()

        for center in pool.centers.values():
            center_item = QTreeWidgetItem([center.name or center.exam_center_id, str(center.script_count), ""])
            center_item.setData(0, ITEM_ROLE, ("center", center.exam_center_id))
            center_item.setFlags(center_item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            center_item.setCheckState(0, self._check_state(is_center_fully_selected(state.selections, center)))
            self.pool_tree.addTopLevelItem(center_item)

            for group in center.institutions.values():
                label = group.name or group.institution_id
                if group.code:
                    label = f"{label} ({group.code})"
                child = QTreeWidgetItem([label, str(group.total), ""])
                child.setData(0, ITEM_ROLE, ("institution", group.institution_id))
                child.setFlags(child.flags() | Qt.ItemFlag.ItemIsUserCheckable)
                entry = state.selections.get(group.institution_id)
                child.setCheckState(0, self._check_state(entry is not None))
                center_item.addChild(child)

                if entry is not None:
                    spin = QSpinBox()
                    spin.setRange(0, entry.total_count)
                    spin.setValue(entry.selected_count)
                    spin.valueChanged.connect(partial(self._on_institution_count_changed, group.institution_id))
                    self.pool_tree.setItemWidget(child, 2, spin)
                    self._count_spins[group.institution_id] = spin

            center_item.setExpanded(center.exam_center_id in state.view.expanded_centers)

        self.select_all_check.setChecked(is_all_selected(state.selections, pool))

    def _render_buckets(self) -> None:
        state = self.controller.state
        self.bucket_table.setRowCount(0)
        self._bucket_spins.clear()
        for row, bucket in enumerate(state.buckets):
            self.bucket_table.insertRow(row)
            name_item = QTableWidgetItem(bucket.display_name or bucket.target_id)
            name_item.setData(ITEM_ROLE, bucket.target_id)
            self.bucket_table.setItem(row, 0, name_item)
            self.bucket_table.setItem(row, 1, QTableWidgetItem(bucket.display_code))
            spin = QSpinBox()
            spin.setRange(0, BUCKET_COUNT_MAX)
            spin.setValue(bucket.script_count)
            spin.valueChanged.connect(partial(self._on_bucket_count_changed, bucket.target_id))
            self.bucket_table.setCellWidget(row, 2, spin)
            self._bucket_spins[bucket.target_id] = spin

    def _render_summary(self) -> None:
        state = self.controller.state
        selected, allocated = state.total_selected, state.total_allocated
        self.summary_label.setText(f"Selected: {selected}    Allocated: {allocated}")
        if state.last_error:
            self.status_label.setText(f"Error: {state.last_error}")
        elif state.phase is SessionPhase.POPULATED and state.pool.is_empty:
            self.status_label.setText("No scripts left to distribute for this filter.")
        elif state.buckets and selected != allocated:
            self.status_label.setText("Selected and allocated counts must match before committing.")
        else:
            self.status_label.setText(f"Status: {state.phase.value}")

        self._rendering = True
        try:
            for index in range(self.pool_tree.topLevelItemCount()):
                item = self.pool_tree.topLevelItem(index)
                _, center_id = item.data(0, ITEM_ROLE)
                center = state.pool.centers.get(center_id)
                if center is not None:
                    item.setCheckState(0, self._check_state(is_center_fully_selected(state.selections, center)))
            self.select_all_check.setChecked(is_all_selected(state.selections, state.visible_pool))
        finally:
            self._rendering = False
        self._update_buttons()

    def _update_buttons(self) -> None:
        state = self.controller.state
        editable = state.phase in (SessionPhase.POPULATED, SessionPhase.ALLOCATING)
        inputs_complete = all(entry.text().strip() for entry in self._filter_inputs.values())
        self.fetch_btn.setEnabled(inputs_complete and not state.is_pending)
        self.start_over_btn.setEnabled(state.phase is not SessionPhase.COMMITTING)
        self.load_examiners_btn.setEnabled(bool(state.filters.exam_id))
        self.add_examiner_btn.setEnabled(editable and self.examiner_combo.count() > 0)
        self.remove_examiner_btn.setEnabled(editable and bool(state.buckets))
        self.distribute_btn.setEnabled(editable and bool(state.buckets) and state.total_selected > 0)
        self.reset_btn.setEnabled(editable)
        self.commit_btn.setEnabled(state.can_commit)

    @staticmethod
    def _check_state(checked: bool) -> Qt.CheckState:
        return Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked

    # ─────────────────────────────────────────────────────────────────────
    # Controller calls
    # ─────────────────────────────────────────────────────────────────────

    def _run(self, func, *args):
        """Call into the controller, reporting refusals instead of raising."""
        try:
            return func(*args)
        except DistributionError as e:
            self.console.append_log("ERROR", str(e))
            self.status_label.setText(f"Error: {e}")
            return None

    def apply_filters(self) -> None:
        """Push the three filter inputs to the session, outermost first."""
        for level, entry in self._filter_inputs.items():
            self._run(self.controller.set_filter, level, entry.text().strip())

    def _on_filter_edited(self, level: FilterLevel) -> None:
        value = self._filter_inputs[level].text().strip()
        if self.controller.state.filters.value_of(level) == value:
            return
        self._run(self.controller.set_filter, level, value)
        self.refresh()

    def _on_fetch_clicked(self) -> None:
        self.apply_filters()
        pool = self._run(self.controller.fetch_scripts)
        if pool is not None:
            self.console.append_log("INFO", f"Fetched {pool.script_count} scripts")
            if not self.controller.eligible_targets:
                self._load_examiners()
        self.refresh()

    def _on_start_over_clicked(self) -> None:
        if self._run(self.controller.dispatch, ResetAll()) is None:
            return
        self.controller.eligible_targets = ()
        for entry in self._filter_inputs.values():
            entry.blockSignals(True)
            entry.clear()
            entry.blockSignals(False)
        self.examiner_combo.clear()
        self.refresh()

    def _on_institution_filter_changed(self, index: int) -> None:
        if self._rendering or index < 0:
            return
        self._run(self.controller.dispatch, SetInstitutionFilter(self.institution_filter.itemData(index) or ""))
        self._schedule_refresh()

    def _on_select_all_clicked(self, checked: bool) -> None:
        self._run(self.controller.dispatch, ToggleAllVisible(checked))
        self._schedule_refresh()

    def _on_item_changed(self, item: QTreeWidgetItem, column: int) -> None:
        if self._rendering or column != 0:
            return
        kind, ident = item.data(0, ITEM_ROLE)
        checked = item.checkState(0) == Qt.CheckState.Checked
        if kind == "center":
            self._run(self.controller.dispatch, ToggleExamCenter(ident, checked))
        else:
            self._run(self.controller.dispatch, ToggleInstitution(ident, checked))
        self._schedule_refresh()

    def _on_item_expanded(self, expanded: bool, item: QTreeWidgetItem) -> None:
        if self._rendering:
            return
        kind, ident = item.data(0, ITEM_ROLE)
        if kind != "center":
            return
        if (ident in self.controller.state.view.expanded_centers) != expanded:
            self._run(self.controller.dispatch, ToggleCenterExpand(ident))

    def _on_institution_count_changed(self, institution_id: str, value: int) -> None:
        if self._rendering:
            return
        self._run(self.controller.dispatch, SetInstitutionCount(institution_id, value))
        self._render_summary()

    def _load_examiners(self) -> None:
        targets = self._run(self.controller.load_targets)
        if targets is None:
            return
        self.examiner_combo.clear()
        for target in targets:
            self.examiner_combo.addItem(target.label, target.target_id)
        if not targets:
            self.console.append_log("WARNING", "No eligible examiners for this exam")

    def _on_load_examiners_clicked(self) -> None:
        self._load_examiners()
        self._update_buttons()

    def _on_add_examiner_clicked(self) -> None:
        target_id = self.examiner_combo.currentData()
        if not target_id:
            return
        self._run(self.controller.add_target, target_id)
        self.refresh()

    def _on_remove_examiner_clicked(self) -> None:
        row = self.bucket_table.currentRow()
        if row < 0:
            row = self.bucket_table.rowCount() - 1
        item = self.bucket_table.item(row, 0)
        if item is None:
            return
        self._run(self.controller.dispatch, RemoveTarget(item.data(ITEM_ROLE)))
        self.refresh()

    def _on_bucket_count_changed(self, target_id: str, value: int) -> None:
        if self._rendering:
            return
        self._run(self.controller.dispatch, SetBucketCount(target_id, value))
        self._render_summary()

    def _on_distribute_clicked(self) -> None:
        self._run(self.controller.dispatch, DistributeEvenly())
        self.refresh()

    def _on_reset_clicked(self) -> None:
        self._run(self.controller.dispatch, ResetAllocation())
        self.refresh()

    def _on_commit_clicked(self) -> None:
        state = self.controller.state
        if self.confirm_commit:
            reply = QMessageBox.question(
                self,
                "Commit Distribution",
                f"Assign {state.total_selected} scripts to {len(state.buckets)} examiners?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                self.console.append_log("INFO", "Commit cancelled by user.")
                return

        receipt = self._run(self.controller.commit)
        if receipt is not None:
            self.console.append_log("SUCCESS", f"Distributed {receipt.accepted_count} scripts")
            if self.controller.last_sheet is not None:
                self.console.append_log("INFO", f"Distribution sheet saved to {self.controller.last_sheet}")
        self.refresh()
