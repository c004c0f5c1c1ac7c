"""
File watcher that reloads a graph when its input documents change.

This module provides:
- Watchdog-based monitoring of the graph and violations documents
- Debounced reloads (editors write files in several steps)
- A polling loop that keeps all graph work on the calling thread
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .relayout import ManualScheduler, RelayoutCoalescer

logger = logging.getLogger(__name__)

RELOAD_DEBOUNCE_SECONDS = 0.3
POLL_SECONDS = 0.1


class GraphFileHandler(FileSystemEventHandler):
    """
    Forwards changes of the watched documents to a queue.

    Runs on the observer thread, so it only enqueues paths; the watch
    loop does everything else.
    """

    def __init__(self, paths: set[Path], changes: "queue.Queue[Path]"):
        super().__init__()
        self.paths = {p.resolve() for p in paths}
        self.changes = changes

    def _forward(self, raw: str | bytes | None) -> None:
        if not raw:
            return
        path = Path(raw if isinstance(raw, str) else raw.decode()).resolve()
        if path in self.paths:
            self.changes.put(path)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._forward(event.src_path)
        self._forward(getattr(event, "dest_path", None))


def start_observer(paths: set[Path], changes: "queue.Queue[Path]"):
    """Watch the parent directories of `paths`; caller stops the observer."""
    handler = GraphFileHandler(paths, changes)
    observer = Observer()
    for directory in sorted({p.resolve().parent for p in paths}):
        observer.schedule(handler, str(directory), recursive=False)
    observer.start()
    return observer, handler


def run_watch_loop(
    paths: set[Path],
    reload: Callable[[], None],
    *,
    debounce_seconds: float = RELOAD_DEBOUNCE_SECONDS,
    stop: threading.Event | None = None,
) -> int:
    """
    Reload once, then again after every burst of changes to `paths`.

    Blocks until `stop` is set or the user interrupts. Returns the number
    of reloads performed.
    """
    changes: "queue.Queue[Path]" = queue.Queue()
    scheduler = ManualScheduler(clock=time.monotonic)
    coalescer = RelayoutCoalescer(scheduler, delay=debounce_seconds)
    stop = stop or threading.Event()

    reloads = 0

    def do_reload() -> None:
        nonlocal reloads
        reloads += 1
        try:
            reload()
        except ValueError as e:
            # Usually a half-written document; the next write triggers again.
            logger.warning("Reload failed: %s", e)

    observer, _ = start_observer(paths, changes)
    try:
        do_reload()
        while not stop.is_set():
            try:
                changed = changes.get(timeout=POLL_SECONDS)
            except queue.Empty:
                changed = None
            if changed is not None:
                logger.debug("Change detected: %s", changed)
                coalescer.schedule_relayout(do_reload)
            scheduler.run_due()
    except KeyboardInterrupt:
        pass
    finally:
        observer.stop()
        observer.join()

    return reloads
