"""Qt launcher for the RSVP reader."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QThread, Signal, Slot
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QSpinBox,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from ..cache import ResultCache
from ..config import HIGHLIGHT_COLORS, ReaderConfig, load_config, save_config
from ..ingest.sources import SUPPORTED_FORMATS
from ..pacing.params import MAX_GAMMA, MAX_WPM, MIN_GAMMA, MIN_WPM, PacingParams
from ..playback import EventKind, PlaybackEvent, SessionResult
from ..scoring import PROVIDERS
from ..session import PreparationOptions, PreparedSession, SessionPreparer
from ..text.normalize import NormalizationOptions
from .reader_window import ReaderWindow
from .resources import app_icon


class PrepareWorker(QThread):
    progress = Signal(str, float)
    finished = Signal(object)
    error = Signal(str)

    def __init__(self, *, options: PreparationOptions, preparer: SessionPreparer) -> None:
        super().__init__()
        self.options = options
        self.preparer = preparer

    def run(self) -> None:  # pragma: no cover - executed in thread
        try:
            session = self.preparer.prepare(
                self.options,
                on_progress=lambda done, total: self.progress.emit(
                    f"Scoring chunk {min(done + 1, total)}/{total}",
                    done / total if total else 1.0,
                ),
            )
            self.finished.emit(session)
        except Exception as exc:  # pragma: no cover - error path
            self.error.emit(str(exc))


class MainWindow(QMainWindow):
    """Pick a source, tune pacing and start a reading session."""

    def __init__(self, config: Optional[ReaderConfig] = None) -> None:
        super().__init__()
        self.setAcceptDrops(True)
        self.config = config or load_config()
        self._cache = ResultCache()
        self._build_ui()
        self.setWindowIcon(app_icon())
        self._configure_widgets()
        self._worker: Optional[PrepareWorker] = None
        self._reader: Optional[ReaderWindow] = None

    # ----- UI setup -----
    def _build_ui(self) -> None:
        self.setWindowTitle("RSVP Reader")
        central = QWidget(self)
        self.setCentralWidget(central)
        root_layout = QVBoxLayout(central)

        source_row = QHBoxLayout()
        self.sourceEdit = QLineEdit(central)
        self.sourceEdit.setPlaceholderText("File path or URL")
        self.browseButton = QPushButton("Open…", central)
        source_row.addWidget(self.sourceEdit)
        source_row.addWidget(self.browseButton)
        root_layout.addLayout(source_row)

        options_layout = QFormLayout()
        self.wpmSpin = QSpinBox(central)
        self.wpmSpin.setRange(MIN_WPM, MAX_WPM)
        self.wpmSpin.setSingleStep(10)
        self.wpmSpin.setValue(self.config.wpm)
        options_layout.addRow("Words per minute", self.wpmSpin)

        self.gammaSpin = QDoubleSpinBox(central)
        self.gammaSpin.setRange(MIN_GAMMA, MAX_GAMMA)
        self.gammaSpin.setSingleStep(0.1)
        self.gammaSpin.setValue(self.config.gamma)
        options_layout.addRow("Intensity", self.gammaSpin)

        self.colorCombo = QComboBox(central)
        self.colorCombo.addItems(list(HIGHLIGHT_COLORS))
        self.colorCombo.setCurrentText(self.config.highlight_color)
        options_layout.addRow("Highlight", self.colorCombo)
        root_layout.addLayout(options_layout)

        pacing_group = QGroupBox("Adaptive pacing", central)
        pacing_layout = QFormLayout(pacing_group)
        self.adaptiveCheck = QCheckBox("Slow down on surprising words", pacing_group)
        pacing_layout.addRow(self.adaptiveCheck)
        self.providerCombo = QComboBox(pacing_group)
        self.providerCombo.addItem("auto", None)
        for name, provider in PROVIDERS.items():
            if provider.supports_logprobs:
                self.providerCombo.addItem(name, name)
        pacing_layout.addRow("Provider", self.providerCombo)
        self.cacheCheck = QCheckBox("Reuse cached scores", pacing_group)
        self.cacheCheck.setChecked(True)
        pacing_layout.addRow("Caching", self.cacheCheck)
        root_layout.addWidget(pacing_group)

        quiz_group = QGroupBox("Comprehension check", central)
        quiz_layout = QFormLayout(quiz_group)
        self.questionSpin = QSpinBox(quiz_group)
        self.questionSpin.setRange(0, 50)
        self.questionSpin.setValue(0)
        quiz_layout.addRow("Questions", self.questionSpin)
        self.frequencySpin = QSpinBox(quiz_group)
        self.frequencySpin.setRange(0, 10000)
        self.frequencySpin.setSingleStep(50)
        self.frequencySpin.setSpecialValueText("evenly spaced")
        quiz_layout.addRow("Words between questions", self.frequencySpin)
        root_layout.addWidget(quiz_group)

        control_row = QHBoxLayout()
        self.readButton = QPushButton("Read", central)
        control_row.addWidget(self.readButton)
        control_row.addStretch(1)
        root_layout.addLayout(control_row)

        self.progressBar = QProgressBar(central)
        self.progressBar.setRange(0, 100)
        root_layout.addWidget(self.progressBar)

        self.statusbar = QStatusBar(self)
        self.setStatusBar(self.statusbar)

    def _configure_widgets(self) -> None:
        self.browseButton.clicked.connect(self._choose_source)
        self.readButton.clicked.connect(self._start_preparation)
        self.progressBar.setValue(0)

    # ----- Source selection -----
    def _choose_source(self) -> None:
        patterns = " ".join(f"*.{ext}" for ext in SUPPORTED_FORMATS)
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Select a document",
            str(Path.home()),
            f"Documents ({patterns});;All files (*)",
        )
        if path:
            self.sourceEdit.setText(path)

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dropEvent(self, event) -> None:  # type: ignore[override]
        for url in event.mimeData().urls():
            local_path = url.toLocalFile()
            if local_path and Path(local_path).suffix.lower().lstrip(".") in SUPPORTED_FORMATS:
                self.sourceEdit.setText(local_path)
                event.acceptProposedAction()
                return
        super().dropEvent(event)

    # ----- Preparation & playback -----
    def _preparation_options(self) -> PreparationOptions:
        frequency = self.frequencySpin.value() or None
        return PreparationOptions(
            source=self.sourceEdit.text().strip(),
            params=self._current_params(),
            adaptive=self.adaptiveCheck.isChecked(),
            provider=self.providerCombo.currentData(),
            use_cache=self.cacheCheck.isChecked(),
            question_count=self.questionSpin.value(),
            question_frequency=frequency,
        )

    def _current_params(self) -> PacingParams:
        return PacingParams(target_wpm=self.wpmSpin.value(), gamma=self.gammaSpin.value())

    def _start_preparation(self) -> None:
        if not self.sourceEdit.text().strip():
            QMessageBox.information(self, "Read", "Choose a file or enter a URL first")
            return
        try:
            options = self._preparation_options()
        except ValueError as exc:
            QMessageBox.warning(self, "Invalid settings", str(exc))
            return
        self._remember_settings()
        worker = PrepareWorker(
            options=options,
            preparer=SessionPreparer(cache=self._cache, normalization=NormalizationOptions()),
        )
        worker.progress.connect(self._on_progress)
        worker.finished.connect(self._on_prepared)
        worker.error.connect(self._on_error)
        self._worker = worker
        self.readButton.setEnabled(False)
        self.statusbar.showMessage("Preparing…")
        worker.start()

    def _remember_settings(self) -> None:
        self.config = ReaderConfig(
            wpm=self.wpmSpin.value(),
            gamma=self.gammaSpin.value(),
            highlight_color=self.colorCombo.currentText(),
        )
        save_config(self.config)

    @Slot(str, float)
    def _on_progress(self, message: str, value: float) -> None:
        self.statusbar.showMessage(message)
        self.progressBar.setValue(int(value * 100))

    @Slot(object)
    def _on_prepared(self, session: PreparedSession) -> None:
        self.progressBar.setValue(0)
        self.readButton.setEnabled(True)
        self._worker = None
        status = f"{len(session.pacing.items)} words"
        if session.cache_hit:
            status += " (cached scores)"
        self.statusbar.showMessage(status, 5000)

        reader = ReaderWindow(
            session.pacing.items,
            durations=session.playback_durations,
            params=session.pacing.params,
            quiz=session.quiz,
            highlight_color=self.config.highlight_color,
        )
        reader.scheduler.subscribe(self._on_playback_event)
        reader.finished.connect(self._on_reading_finished)
        self._reader = reader
        reader.show()
        reader.start()

    def _on_playback_event(self, event: PlaybackEvent) -> None:
        if event.kind is EventKind.PARAMS_CHANGED:
            self.config.wpm = event.state.wpm
            self.config.gamma = event.state.gamma
            self.wpmSpin.setValue(event.state.wpm)
            self.gammaSpin.setValue(event.state.gamma)
            save_config(self.config)

    @Slot(object)
    def _on_reading_finished(self, result: Optional[SessionResult]) -> None:
        self._reader = None
        if result is None:
            self.statusbar.showMessage("Finished reading", 5000)
            return
        QMessageBox.information(
            self,
            "Session complete",
            f"Score: {result.score}/{result.total} ({result.percentage}%)\n"
            f"Time: {result.elapsed_seconds:.1f}s",
        )

    @Slot(str)
    def _on_error(self, message: str) -> None:
        QMessageBox.critical(self, "Preparation failed", message)
        self.progressBar.setValue(0)
        self.readButton.setEnabled(True)
        self._worker = None


__all__ = ["MainWindow", "PrepareWorker"]
