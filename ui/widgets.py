"""Custom widgets for the take continuity logger UI."""

from typing import Optional, Union

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QCheckBox, QHBoxLayout, QLabel, QLineEdit, QWidget

from continuity.slots import normalize_file_number

SlotValue = Union[str, tuple[str, str]]


class SlotInput(QWidget):
    """File-number input holding a single number or a from/to range.

    Numbers are cleaned and zero-padded when editing finishes. Camera
    inputs carry a REC checkbox for channels that did not record.
    """

    valueChanged = pyqtSignal()
    recToggled = pyqtSignal(bool)

    def __init__(self, label: str, with_rec: bool = False, parent: Optional[QWidget] = None) -> None:
        """Initialize the slot input.

        Args:
            label: Field label shown on the left.
            with_rec: Show a REC checkbox.
            parent: Parent widget.
        """
        super().__init__(parent)
        self.label = QLabel(label)
        self.label.setMinimumWidth(100)
        self.from_edit = QLineEdit()
        self.from_edit.setPlaceholderText("0001")
        self.to_edit = QLineEdit()
        self.to_edit.setPlaceholderText("to")
        self.to_edit.setVisible(False)
        self.range_check = QCheckBox("Range")
        self.rec_check: Optional[QCheckBox] = None

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.label)
        layout.addWidget(self.from_edit, 1)
        layout.addWidget(self.to_edit, 1)
        layout.addWidget(self.range_check)
        if with_rec:
            self.rec_check = QCheckBox("REC")
            self.rec_check.setChecked(True)
            self.rec_check.toggled.connect(self._on_rec_toggled)
            layout.addWidget(self.rec_check)

        self.range_check.toggled.connect(self._on_range_toggled)
        self.from_edit.editingFinished.connect(lambda: self._normalize(self.from_edit))
        self.to_edit.editingFinished.connect(lambda: self._normalize(self.to_edit))

    def _normalize(self, edit: QLineEdit) -> None:
        edit.setText(normalize_file_number(edit.text()))
        self.valueChanged.emit()

    def _on_range_toggled(self, checked: bool) -> None:
        self.to_edit.setVisible(checked)
        if not checked:
            self.to_edit.clear()
        self.valueChanged.emit()

    def _on_rec_toggled(self, checked: bool) -> None:
        self.from_edit.setEnabled(checked and self.isEnabled())
        self.to_edit.setEnabled(checked and self.isEnabled())
        self.recToggled.emit(checked)

    def value(self) -> SlotValue:
        if self.range_check.isChecked():
            return (self.from_edit.text(), self.to_edit.text())
        return self.from_edit.text()

    def setValue(self, value: Optional[SlotValue]) -> None:
        """Show a stored value; a pair switches to range mode."""
        if isinstance(value, tuple):
            self.range_check.setChecked(True)
            self.from_edit.setText(value[0])
            self.to_edit.setText(value[1])
        else:
            self.range_check.setChecked(False)
            self.from_edit.setText(value or '')

    def isRecActive(self) -> bool:
        return self.rec_check is None or self.rec_check.isChecked()

    def setRecActive(self, active: bool) -> None:
        if self.rec_check is not None:
            self.rec_check.setChecked(active)
