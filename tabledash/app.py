from __future__ import annotations

import queue
import sys
from pathlib import Path

from rich.console import Console

from .config import *
from .configLoader import DEFAULT_CONFIG_PATH, loadConfigFile
from .errors import ConfigLoadError
from .eventLog import EventLog
from .registry import RebuildReport, TableEntry, TableRegistry
from .scheduler import RefreshScheduler
from .sources import describeSource
from .ui import RichUi
from .watcher import ConfigWatcher


class DashApp:
    def __init__(
        self,
        configPath: str | Path,
        *,
        config: DashConfig | None = None,
        console: Console | None = None,
    ) -> None:
        self.configPath = Path(configPath)

        # a broken configuration at startup is fatal: ConfigLoadError propagates
        self.config = config if config is not None else loadConfigFile(self.configPath)

        self.eventLog = EventLog(maxLines=self.config.logMaxLines)
        self.registry = TableRegistry(self.config)
        self.scheduler = RefreshScheduler(
            self.registry,
            eventLog=self.eventLog,
            tickSec=self.config.tickSec,
        )
        self.reloadEvents: queue.Queue[None] = queue.Queue()
        self.watcher = ConfigWatcher(
            self.configPath,
            self.notifyConfigChanged,
            pollSec=self.config.watchSec,
            eventLog=self.eventLog,
        )
        self.ui = RichUi(
            self.registry,
            self.eventLog,
            refreshRateSec=self.config.frameSec,
            showLog=self.config.showLog,
            console=console,
        )

    def notifyConfigChanged(self) -> None:
        self.reloadEvents.put(None)

    def takeReloadRequest(self) -> bool:
        pending = False
        while True:
            try:
                self.reloadEvents.get_nowait()
            except queue.Empty:
                return pending
            pending = True

    def reloadConfig(self) -> RebuildReport | None:
        """Re-read the configuration file and rebuild the registry.

        On a load error the previous configuration stays active.
        """
        try:
            newConfig = loadConfigFile(self.configPath)
        except ConfigLoadError as exc:
            self.eventLog.write(f"reload aborted, keeping previous configuration: {exc}")
            return None

        report = self.registry.rebuild(newConfig)
        self.config = newConfig

        self.scheduler.tickSec = newConfig.tickSec
        self.watcher.pollSec = newConfig.watchSec
        self.ui.refreshRateSec = newConfig.frameSec
        self.eventLog.resize(newConfig.logMaxLines)

        self.eventLog.write(f"configuration reloaded: {report.summary()}")
        snapshot = self.registry.snapshot()
        for tableId in report.added + report.reset:
            self.logTableSource(snapshot.get(tableId))
        return report

    def logTableSource(self, entry: TableEntry | None) -> None:
        if entry is not None:
            self.eventLog.write(f"{entry.tableId}: {describeSource(entry.source)}")

    def start(self) -> None:
        self.eventLog.write(f"loaded {self.configPath} ({len(self.registry.snapshot())} tables)")
        for entry in self.registry.snapshot().entries.values():
            self.logTableSource(entry)
        self.scheduler.start()
        self.watcher.start()

    def stop(self) -> None:
        self.watcher.stop()
        self.scheduler.stop()

    def tick(self) -> None:
        if self.takeReloadRequest():
            self.reloadConfig()

    def run(self) -> None:
        self.start()
        try:
            self.ui.runLoop(self.tick)
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    configPath = args[0] if args else DEFAULT_CONFIG_PATH

    try:
        app = DashApp(configPath)
    except ConfigLoadError as exc:
        print(f"tabledash: {exc}", file=sys.stderr)
        return 1

    app.run()
    return 0
