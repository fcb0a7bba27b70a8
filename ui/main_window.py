"""Main window UI for the take continuity logger."""

from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QSplitter,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from continuity import (
    Classification,
    ContinuityError,
    EntryForm,
    FileRangeConflict,
    InsertEligible,
    ShotDetail,
    TakeCollision,
    TakeLogManager,
    TakeResolution,
    WasteOptions,
    format_slot,
)
from continuity.settings import settings_from_dict
from continuity.slots import SOUND, field_label, file_fields
from .widgets import SlotInput

TEXT_FIELDS = ('scene', 'shot', 'take', 'episode', 'description', 'notes')


class WasteDialog(QDialog):
    """Asks which channels of a wasted take still carry file numbers."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Waste")
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Which files were recorded for this take?"))
        self.camera_check = QCheckBox("Camera")
        self.sound_check = QCheckBox("Sound")
        layout.addWidget(self.camera_check)
        layout.addWidget(self.sound_check)
        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def get_values(self) -> WasteOptions:
        return WasteOptions(camera=self.camera_check.isChecked(), sound=self.sound_check.isChecked())


class LogSheetWindow(QWidget):
    """PyQt6 GUI: project log sheet plus the entry form for the next take."""

    def __init__(self, manager: TakeLogManager) -> None:
        """Initialize the UI.

        Args:
            manager: Take log manager backing the window.
        """
        super().__init__()
        self.manager = manager
        self.form: Optional[EntryForm] = None
        self.text_edits: dict[str, QLineEdit] = {}
        self.slot_inputs: dict[str, SlotInput] = {}
        self.class_buttons: dict[Classification, QPushButton] = {}
        self._setup_window()
        self._create_widgets()
        self._create_layout()
        self._connect_signals()
        self._load_projects()

    def _setup_window(self) -> None:
        """Configure the main window properties."""
        self.setWindowTitle('Take Continuity Logger')
        self.setMinimumSize(1000, 650)

    def _create_widgets(self) -> None:
        """Create all UI widgets."""
        self.project_combo = QComboBox()
        self.new_project_btn = QPushButton("+ New Project")
        self.status_label = QLabel()
        self.status_label.setStyleSheet("color: gray; font-size: 10px;")

        # Log sheet
        self.entry_tree = QTreeWidget()
        self.entry_tree.setRootIsDecorated(False)
        self.entry_tree.setAlternatingRowColors(True)
        self.delete_btn = QPushButton("Delete Entry")

        # Entry form
        for name in TEXT_FIELDS:
            self.text_edits[name] = QLineEdit()
        self.slot_box = QGroupBox("Files")
        self.slot_layout = QVBoxLayout(self.slot_box)
        for classification in (Classification.WASTE, Classification.INSERT,
                               Classification.AMBIENCE, Classification.SFX):
            button = QPushButton(classification.value.upper())
            button.setCheckable(True)
            self.class_buttons[classification] = button
        self.mos_check = QCheckBox("MOS")
        self.good_check = QCheckBox("Good take")
        self.save_btn = QPushButton("Log Take")
        self.save_btn.setStyleSheet("font-weight: bold;")

    def _create_layout(self) -> None:
        """Arrange widgets in layouts."""
        project_layout = QHBoxLayout()
        project_layout.addWidget(QLabel("Project:"))
        project_layout.addWidget(self.project_combo, 1)
        project_layout.addWidget(self.new_project_btn)

        sheet_panel = QWidget()
        sheet_layout = QVBoxLayout(sheet_panel)
        sheet_layout.setContentsMargins(0, 0, 0, 0)
        sheet_layout.addWidget(self.entry_tree, 1)
        sheet_layout.addWidget(self.delete_btn)

        form_panel = QWidget()
        form_layout = QVBoxLayout(form_panel)
        form_layout.setContentsMargins(0, 0, 0, 0)

        class_layout = QHBoxLayout()
        for button in self.class_buttons.values():
            class_layout.addWidget(button)
        form_layout.addLayout(class_layout)

        fields = QFormLayout()
        for name, edit in self.text_edits.items():
            fields.addRow(name.title() + ":", edit)
        form_layout.addLayout(fields)
        form_layout.addWidget(self.slot_box)

        details_layout = QHBoxLayout()
        details_layout.addWidget(self.mos_check)
        details_layout.addWidget(self.good_check)
        details_layout.addStretch()
        form_layout.addLayout(details_layout)
        form_layout.addStretch()
        form_layout.addWidget(self.save_btn)

        splitter = QSplitter()
        splitter.addWidget(sheet_panel)
        splitter.addWidget(form_panel)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 2)

        main_layout = QVBoxLayout(self)
        main_layout.addLayout(project_layout)
        main_layout.addWidget(splitter, 1)
        main_layout.addWidget(self.status_label)

    def _connect_signals(self) -> None:
        """Connect widget signals to slots."""
        self.project_combo.currentIndexChanged.connect(self._on_project_changed)
        self.new_project_btn.clicked.connect(self._create_project)
        self.delete_btn.clicked.connect(self._delete_selected_entry)
        self.save_btn.clicked.connect(self._save_entry)
        self.mos_check.clicked.connect(self._on_mos_clicked)
        for classification, button in self.class_buttons.items():
            button.clicked.connect(lambda _, c=classification: self._on_classification_clicked(c))

    # --- Projects ---

    @property
    def project_id(self) -> Optional[int]:
        return self.project_combo.currentData()

    def _load_projects(self, select: Optional[int] = None) -> None:
        self.project_combo.blockSignals(True)
        self.project_combo.clear()
        for project in self.manager.db.get_projects():
            self.project_combo.addItem(project.name, project.id)
        if select is not None:
            self.project_combo.setCurrentIndex(self.project_combo.findData(select))
        self.project_combo.blockSignals(False)
        self._on_project_changed()

    def _create_project(self) -> None:
        name, ok = QInputDialog.getText(self, "New Project", "Project name:")
        if not ok or not name.strip():
            return
        cameras, ok = QInputDialog.getInt(self, "New Project", "Number of cameras:", 1, 1, 10)
        if not ok:
            return
        try:
            project_id = self.manager.create_project(
                name.strip(), settings_from_dict({'camera_count': cameras})
            )
        except ContinuityError as e:
            QMessageBox.warning(self, "Cannot Create Project", str(e))
            return
        self._load_projects(select=project_id)

    def _on_project_changed(self, _=None) -> None:
        if self.project_id is None:
            self.form = None
            self.entry_tree.clear()
            self.save_btn.setEnabled(False)
            return
        self.save_btn.setEnabled(True)
        self._rebuild_slot_inputs()
        self._refresh_entries()
        self._new_form()

    def _rebuild_slot_inputs(self) -> None:
        for slot_input in self.slot_inputs.values():
            self.slot_layout.removeWidget(slot_input)
            slot_input.deleteLater()
        self.slot_inputs.clear()

        settings = self.manager.settings_for(self.project_id)
        for field_id in file_fields(settings):
            with_rec = settings.is_multi_camera and field_id != SOUND
            slot_input = SlotInput(field_label(field_id, settings.camera_count), with_rec)
            if with_rec:
                slot_input.recToggled.connect(lambda active, f=field_id: self._on_rec_toggled(f, active))
            self.slot_inputs[field_id] = slot_input
            self.slot_layout.addWidget(slot_input)

    # --- Log sheet ---

    def _refresh_entries(self) -> None:
        settings = self.manager.settings_for(self.project_id)
        fields = file_fields(settings)
        self.entry_tree.clear()
        self.entry_tree.setHeaderLabels(
            ["Scene", "Shot", "Take", "Class"]
            + [field_label(f, settings.camera_count) for f in fields]
            + ["Description"]
        )
        self.entry_tree.header().setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)

        entries = self.manager.db.list_entries(self.project_id)
        for entry in entries:
            item = QTreeWidgetItem([
                entry.scene or '', entry.shot or '', entry.take or '',
                '' if entry.classification is Classification.NORMAL else entry.classification.value.upper(),
            ] + [format_slot(entry.slot(f)) for f in fields] + [entry.description or ''])
            item.setData(0, Qt.ItemDataRole.UserRole, entry.id)
            self.entry_tree.addTopLevelItem(item)

        gate = self.manager.gate
        if gate is not None and self.project_id not in gate.state.unlocked_projects:
            self.status_label.setText(
                f"{len(entries)} entries, trial entries left: {gate.remaining_trial_entries()}"
            )
        else:
            self.status_label.setText(f"{len(entries)} entries")

    def _delete_selected_entry(self) -> None:
        item = self.entry_tree.currentItem()
        if item is None:
            return
        reply = QMessageBox.question(
            self, "Delete Entry",
            "Delete this entry? Later takes of the shot are renumbered.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return
        try:
            self.manager.delete_entry(item.data(0, Qt.ItemDataRole.UserRole))
        except ContinuityError as e:
            QMessageBox.critical(self, "Error", str(e))
            return
        self._refresh_entries()
        self._new_form()

    # --- Entry form ---

    def _new_form(self) -> None:
        rec_active = {f: w.isRecActive() for f, w in self.slot_inputs.items() if f != SOUND}
        self.form = self.manager.new_form(self.project_id, rec_active)
        self._sync_widgets()

    def _read_widgets(self) -> None:
        """Copy enabled widget values into the form."""
        for name, edit in self.text_edits.items():
            if name not in self.form.disabled_fields:
                self.form.values[name] = edit.text()
        for field_id, slot_input in self.slot_inputs.items():
            if field_id not in self.form.disabled_fields:
                self.form.values[field_id] = slot_input.value()
        self.form.is_good_take = self.good_check.isChecked()

    def _sync_widgets(self) -> None:
        """Show the form state: values, disabled fields and classification."""
        disabled = self.form.disabled_fields
        for name, edit in self.text_edits.items():
            edit.setText(str(self.form.values.get(name) or ''))
            edit.setEnabled(name not in disabled)
        for field_id, slot_input in self.slot_inputs.items():
            slot_input.setValue(self.form.values.get(field_id))
            slot_input.setEnabled(field_id not in disabled)
            if field_id != SOUND:
                slot_input.setRecActive(self.form.rec_active.get(field_id, True))
        for classification, button in self.class_buttons.items():
            button.setChecked(self.form.classification is classification)
        self.mos_check.setChecked(self.form.is_mos)
        self.good_check.setChecked(self.form.is_good_take)

    def _on_classification_clicked(self, classification: Classification) -> None:
        self._read_widgets()
        waste = None
        speed = None
        leaving = self.form.classification is classification
        if classification is Classification.WASTE and not leaving:
            dialog = WasteDialog(self)
            if dialog.exec() != QDialog.DialogCode.Accepted:
                self._sync_widgets()
                return
            waste = dialog.get_values()
        elif classification is Classification.INSERT and not leaving:
            reply = QMessageBox.question(
                self, "Insert", "Did sound speed roll?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            speed = reply == QMessageBox.StandardButton.Yes

        try:
            self.form.select_classification(classification, waste_options=waste, sound_speed=speed)
        except ContinuityError as e:
            QMessageBox.warning(self, "Classification", str(e))
        self._sync_widgets()

    def _on_mos_clicked(self) -> None:
        self._read_widgets()
        try:
            self.form.toggle_shot_detail(ShotDetail.MOS)
        except ContinuityError as e:
            QMessageBox.warning(self, "MOS", str(e))
        self._sync_widgets()

    def _on_rec_toggled(self, field_id: str, active: bool) -> None:
        if self.form is not None:
            self.form.set_rec_active(field_id, active)

    def _save_entry(self) -> None:
        if self.form is None:
            return
        self._read_widgets()
        try:
            entry = self.manager.commit(self.project_id, self.form, resolver=self)
        except FileRangeConflict as e:
            QMessageBox.warning(self, "File Number Conflict", str(e))
            return
        except ContinuityError as e:
            QMessageBox.warning(self, "Cannot Log Take", str(e))
            return
        if entry is None:
            return
        self._refresh_entries()
        self._new_form()

    # --- Conflict prompts ---

    def resolve_take_conflict(self, collision: TakeCollision) -> TakeResolution:
        box = QMessageBox(self)
        box.setWindowTitle("Take Already Logged")
        box.setText(f"This take already exists at {collision.existing.location}.")
        suggested = box.addButton(
            f"Use Take {collision.suggested_take}", QMessageBox.ButtonRole.AcceptRole
        )
        insert = box.addButton("Insert Here", QMessageBox.ButtonRole.ActionRole)
        box.addButton(QMessageBox.StandardButton.Cancel)
        box.exec()
        if box.clickedButton() is suggested:
            return TakeResolution.USE_SUGGESTED
        if box.clickedButton() is insert:
            return TakeResolution.INSERT_HERE
        return TakeResolution.CANCEL

    def confirm_insert_before(self, eligible: InsertEligible) -> bool:
        reply = QMessageBox.question(
            self, "Insert Before?",
            f"The file numbers match {eligible.target.location}.\n\n"
            f"Insert this take before it and renumber the following takes?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return reply == QMessageBox.StandardButton.Yes
