from __future__ import annotations

from typing import Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from dualsub.ui.bridge import OverlayCommand
from dualsub.ui.style import (
    OverlayStyle,
    label_stylesheet,
    panel_stylesheet,
    render_translation_html,
)


class SubtitleOverlay(QtWidgets.QWidget):
    """
    Frameless always-on-top overlay for the translated track.

    Hidden until the first show command; ESC asks the app to quit; drag with
    the mouse to move it away from the native captions.
    """

    escape_requested = QtCore.pyqtSignal()

    def __init__(self, style: OverlayStyle | None = None):
        super().__init__()
        self.overlay_style = style or OverlayStyle()
        self._drag_pos: Optional[QtCore.QPoint] = None

        self.setWindowFlags(
            QtCore.Qt.WindowType.FramelessWindowHint
            | QtCore.Qt.WindowType.WindowStaysOnTopHint
            | QtCore.Qt.WindowType.Tool
        )
        self.setAttribute(QtCore.Qt.WidgetAttribute.WA_TranslucentBackground, True)

        self.panel = QtWidgets.QFrame(self)
        self.label = QtWidgets.QLabel(self.panel)
        self.label.setTextFormat(QtCore.Qt.TextFormat.RichText)
        self.label.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        self.label.setWordWrap(True)

        layout = QtWidgets.QVBoxLayout(self.panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.label)

        outer = QtWidgets.QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(self.panel)

        self.resize(900, 120)
        self.apply_style(self.overlay_style)

    def apply_style(self, style: OverlayStyle) -> None:
        self.overlay_style = style
        self.panel.setStyleSheet(panel_stylesheet(style))
        self.label.setStyleSheet(label_stylesheet(style))
        self.setWindowOpacity(style.text_opacity)
        self.apply_position()

    def apply_position(self) -> None:
        screen = QtGui.QGuiApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        x = geom.left() + max(0, (geom.width() - self.width()) // 2)
        offset = geom.height() * self.overlay_style.offset_pct // 100
        if self.overlay_style.position == "top":
            y = geom.top() + offset
        else:
            y = geom.top() + max(0, geom.height() - offset - self.height())
        self.move(x, y)

    def show_text(self, text: str) -> None:
        self.label.setText(render_translation_html(text))
        if not self.isVisible():
            self.show()

    def hide_text(self) -> None:
        self.label.setText("")
        self.hide()

    def apply_command(self, cmd: OverlayCommand) -> None:
        if cmd.kind == "show":
            self.show_text(cmd.text)
        elif cmd.kind == "hide":
            self.hide_text()
        elif cmd.kind == "style" and cmd.style is not None:
            self.apply_style(cmd.style)

    # ----- Drag to move -----
    def mousePressEvent(self, ev: QtGui.QMouseEvent) -> None:
        if ev.button() == QtCore.Qt.MouseButton.LeftButton:
            self._drag_pos = ev.globalPosition().toPoint() - self.frameGeometry().topLeft()
        super().mousePressEvent(ev)

    def mouseMoveEvent(self, ev: QtGui.QMouseEvent) -> None:
        if self._drag_pos is not None and (ev.buttons() & QtCore.Qt.MouseButton.LeftButton):
            self.move(ev.globalPosition().toPoint() - self._drag_pos)
        super().mouseMoveEvent(ev)

    def mouseReleaseEvent(self, ev: QtGui.QMouseEvent) -> None:
        self._drag_pos = None
        super().mouseReleaseEvent(ev)

    def keyPressEvent(self, ev: QtGui.QKeyEvent) -> None:
        if ev.key() == QtCore.Qt.Key.Key_Escape:
            self.escape_requested.emit()
            return
        super().keyPressEvent(ev)
