"""Application entry points for the RSVP reader.

This module supports both ``python -m rsvp_reader.app`` and direct execution
via ``python rsvp_reader/app.py``. The latter path leaves ``__package__`` unset,
so ``sys.path`` is patched before the window classes are imported.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtWidgets import QApplication

if __package__ in {None, ""}:  # pragma: no cover - executed when run as a script
    package_root = Path(__file__).resolve().parent.parent
    if str(package_root) not in sys.path:
        sys.path.insert(0, str(package_root))
    from rsvp_reader.config import ReaderConfig
    from rsvp_reader.playback import EventKind, PlaybackEvent, PlaybackState, SessionResult
    from rsvp_reader.session import PreparedSession
    from rsvp_reader.ui.main_window import MainWindow
    from rsvp_reader.ui.reader_window import ReaderWindow
else:  # pragma: no cover - exercised when run as a module
    from .config import ReaderConfig
    from .playback import EventKind, PlaybackEvent, PlaybackState, SessionResult
    from .session import PreparedSession
    from .ui.main_window import MainWindow
    from .ui.reader_window import ReaderWindow


def _application() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    return app  # type: ignore[return-value]


def run_reader(
    session: PreparedSession,
    config: ReaderConfig,
    *,
    max_items: int = 0,
    on_params_changed: Optional[Callable[[PlaybackState], None]] = None,
) -> Optional[SessionResult]:
    """Show *session* in a reader window and block until playback ends."""

    app = _application()
    window = ReaderWindow(
        session.pacing.items,
        durations=session.playback_durations,
        params=session.pacing.params,
        quiz=session.quiz,
        max_items=max_items,
        highlight_color=config.highlight_color,
    )
    if on_params_changed is not None:

        def forward(event: PlaybackEvent) -> None:
            if event.kind is EventKind.PARAMS_CHANGED:
                on_params_changed(event.state)

        window.scheduler.subscribe(forward)
    window.finished.connect(lambda _result: app.quit())
    if session.document.title:
        window.setWindowTitle(f"{session.document.title} - RSVP Reader")
    window.show()
    window.start()
    app.exec()
    return window.scheduler.stop()


def main() -> None:
    app = _application()
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
