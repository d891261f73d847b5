"""Allow running MediTimer as a module: python -m meditimer [MM:SS ...]."""

import logging
import sys

from PyQt6.QtGui import QIcon, QPixmap, QPainter, QColor
from PyQt6.QtWidgets import QApplication, QSystemTrayIcon

from .audio.sounds import SoundManager
from .database import SqlKeyValueStore, init_db
from .lifecycle import AppStateMonitor
from .logging_utils import setup_logging
from .notifications import TrayNotificationService
from .settings import LOG_DIR, load_settings
from .timer.engine import SessionController
from .timer.models import Duration
from .wakelock import CaffeinateWakeLock


def parse_durations(args: list[str]) -> list[Duration]:
    """``["5:00", "90"]`` -> ``[Duration(5, 0), Duration(1, 30)]``."""
    durations = []
    for arg in args:
        minutes, _, seconds = arg.rpartition(":")
        if minutes:
            durations.append(Duration.clamped(int(minutes), int(seconds)))
        else:
            durations.append(Duration.from_seconds(int(seconds)))
    return durations


def _tray_icon(app: QApplication) -> QSystemTrayIcon:
    # Placeholder icon: sage circle
    pixmap = QPixmap(64, 64)
    pixmap.fill(QColor(0, 0, 0, 0))
    p = QPainter(pixmap)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    p.setBrush(QColor("#8FBC8F"))
    p.setPen(QColor("#8FBC8F").darker(120))
    p.drawEllipse(4, 4, 56, 56)
    p.end()
    icon = QIcon(pixmap)
    app.setWindowIcon(icon)
    tray = QSystemTrayIcon(icon, app)
    tray.setToolTip("MediTimer")
    tray.show()
    return tray


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings()
    logger, log_path = setup_logging(LOG_DIR, settings.log_level)

    try:
        durations = parse_durations(argv)
    except ValueError:
        print("usage: python -m meditimer [MM:SS | SECONDS] ...", file=sys.stderr)
        sys.exit(2)

    init_db()

    app = QApplication(sys.argv[:1])
    app.setApplicationName("MediTimer")
    app.setOrganizationName("MediTimer")
    app.setQuitOnLastWindowClosed(False)

    sounds = SoundManager(parent=app)
    sounds.set_enabled(settings.sound_enabled)
    sounds.set_volume(settings.sound_volume)

    controller = SessionController(
        parent=app,
        store=SqlKeyValueStore(),
        notifications=TrayNotificationService(
            _tray_icon(app), parent=app,
            enabled=settings.notifications_enabled,
            # Ticking means the chime covers each boundary
            watched=lambda: controller.clock_active,
        ),
        chime=sounds.chime,
        wake_lock=CaffeinateWakeLock(enabled=settings.keep_awake),
        default_duration=Duration.clamped(
            settings.default_minutes, settings.default_seconds,
        ),
    )

    monitor = AppStateMonitor(parent=app)
    monitor.start(app)
    controller.attach(monitor)

    first = controller.segments[0]
    if durations:
        controller.update_segment(
            first.id, minutes=durations[0].minutes, seconds=durations[0].seconds,
        )
        for duration in durations[1:]:
            segment = controller.add_segment()
            controller.update_segment(
                segment.id, minutes=duration.minutes, seconds=duration.seconds,
            )

    controller.tick.connect(
        lambda index, remaining: print(
            f"\rSegment {index + 1}: {Duration.from_seconds(remaining)}",
            end="", flush=True,
        )
    )
    controller.session_finished.connect(app.quit)

    if not controller.start_meditation():
        print("Every segment needs at least one second.", file=sys.stderr)
        sys.exit(1)

    logger.info("MediTimer started with %d segment(s)", len(controller.segments))
    print(f"MediTimer running (log: {log_path})")
    code = app.exec()
    controller.detach()
    monitor.stop()
    logging.shutdown()
    sys.exit(code)


if __name__ == "__main__":
    main()
