"""Desktop tray runtime and operator failure notifications."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, QTimer, Signal, Slot
from PySide6.QtGui import QAction, QIcon
from PySide6.QtWidgets import QApplication, QMenu, QMessageBox, QSystemTrayIcon

from keyscreen_core import KeyScreenRuntime, build_runtime, load_config
from keyscreen_core.logging_setup import configure_logging, get_logger, install_crash_hooks


class TrayNotifier(QObject):
    """Shows the failure message from the tray; a click or the timeout acknowledges it.

    `notify` may be called from the delivery thread, so the request is re-emitted
    as a queued signal and handled on the GUI thread.
    """

    requested = Signal(str, str)

    def __init__(self, tray: QSystemTrayIcon | None, timeout_ms: int = 30000) -> None:
        super().__init__()
        self.tray = tray
        self.timeout_ms = timeout_ms
        self._on_ack: Callable[[], None] | None = None
        self.requested.connect(self._show)
        if tray is not None:
            tray.messageClicked.connect(self._acknowledge)

    def notify(self, title: str, message: str, on_ack: Callable[[], None]) -> None:
        self._on_ack = on_ack
        self.requested.emit(title, message)

    @Slot(str, str)
    def _show(self, title: str, message: str) -> None:
        if self.tray is None:
            QMessageBox.critical(None, title, message)
            self._acknowledge()
            return
        self.tray.showMessage(title, message, QSystemTrayIcon.MessageIcon.Critical, self.timeout_ms)
        QTimer.singleShot(self.timeout_ms, self._acknowledge)

    @Slot()
    def _acknowledge(self) -> None:
        on_ack, self._on_ack = self._on_ack, None
        if on_ack is not None:
            on_ack()


def _status_text(runtime: KeyScreenRuntime) -> str:
    session = runtime.session
    device = session.device.product_name if session.device else "no keyboard"
    return f"KeyScreen: {session.status.value} ({device}), screen {session.state.current_screen_index + 1}"


def run_gui(transcript_path: Path | None = None) -> int:
    cfg = load_config()
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=False)
    install_crash_hooks(headless=False)
    logger = get_logger()

    app = QApplication(sys.argv)
    app.setApplicationName("KeyScreen")
    app.setQuitOnLastWindowClosed(False)

    tray = None
    if QSystemTrayIcon.isSystemTrayAvailable():
        tray = QSystemTrayIcon(QIcon.fromTheme("input-keyboard"), app)
        tray.setToolTip("KeyScreen")

    notifier = TrayNotifier(tray, timeout_ms=cfg.notifications.timeout_ms)
    runtime = build_runtime(cfg, notifier=notifier, terminate=app.exit, transcript_path=transcript_path)

    def export_diagnostics() -> None:
        bundle = runtime.export_diagnostics()
        logger.info("diagnostics exported to %s", bundle, extra={"event": "diagnostics_exported"})
        tray.showMessage("KeyScreen", f"Diagnostics saved to {bundle}", QSystemTrayIcon.MessageIcon.Information)

    if tray is not None:
        menu = QMenu()
        diagnostics_action = QAction("Export Diagnostics", menu)
        diagnostics_action.triggered.connect(export_diagnostics)
        menu.addAction(diagnostics_action)
        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(app.quit)
        menu.addAction(quit_action)
        tray.setContextMenu(menu)
        tray.show()

        status_timer = QTimer(app)
        status_timer.timeout.connect(lambda: tray.setToolTip(_status_text(runtime)))
        status_timer.start(cfg.delivery.interval_ms)

    runtime.start()
    exit_code = app.exec()
    runtime.shutdown()
    logger.info("app shutdown", extra={"event": "shutdown", "exit_code": int(exit_code)})
    return int(exit_code)
