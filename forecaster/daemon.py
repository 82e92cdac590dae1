"""Refresh daemon: runs the forecast refresh once a day at a fixed local time.

Usage:
    python -m forecaster daemon --config ops/configs/default.yaml
    python -m forecaster daemon --run-now   # refresh immediately, then daily
    python -m forecaster daemon --stop      # stop running daemon
    python -m forecaster daemon --status
"""

import json
import logging
import os
import signal
import sys
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

from forecaster.config.schema import ForecasterConfig
from forecaster.models.errors import ForecasterError
from forecaster.pipeline.refresh_pipeline import RefreshPipeline

logger = logging.getLogger(__name__)

PID_DIR = Path("data")
PID_FILE = PID_DIR / "daemon.pid"
STATE_FILE = PID_DIR / "daemon_state.json"
LOG_DIR = Path("logs")
MAX_LOG_FILES = 30  # about a month of daily refresh logs


def next_run_at(now: datetime, hour: int, minute: int) -> datetime:
    """Next local fire time strictly after ``now``."""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class RefreshDaemon:
    """Triggers the refresh pipeline daily with signal handling and state reporting."""

    def __init__(
        self,
        config: ForecasterConfig,
        db_path: str = "data/forecaster.db",
        run_now: bool = False,
    ):
        self.config = config
        self.db_path = db_path
        self.run_now = run_now
        self._running = False
        self._total_runs = 0
        self._total_successes = 0
        self._total_failures = 0
        self._last_failures_by_kind: dict[str, int] = {}
        self._started_at: str | None = None
        self._next_run_at: datetime | None = None

    def start(self) -> None:
        """Start the daemon loop."""
        self._check_not_already_running()
        self._write_pid()
        self._setup_signals()
        self._running = True
        self._started_at = datetime.now(UTC).isoformat()

        logger.info(
            "Daemon started, daily refresh at %s local, pid=%d",
            self.config.schedule.refresh_time, os.getpid(),
        )
        print(
            f"Refresh daemon started (pid {os.getpid()}, "
            f"daily at {self.config.schedule.refresh_time})"
        )
        print(f"   Logs: {LOG_DIR}/")
        print("   Stop: python -m forecaster daemon --stop")

        try:
            self._loop()
        except KeyboardInterrupt:
            logger.info("Daemon interrupted by keyboard")
        finally:
            self._cleanup()

    def _loop(self) -> None:
        """Sleep until the next fire time, refresh, repeat."""
        if self.run_now:
            self._run_one_refresh()

        schedule = self.config.schedule
        while self._running:
            self._next_run_at = next_run_at(datetime.now(), schedule.hour, schedule.minute)
            self._save_state()
            logger.info("Next refresh at %s", self._next_run_at.isoformat())

            # Sleep in 1-second increments so we can respond to signals
            while self._running and datetime.now() < self._next_run_at:
                time.sleep(1)

            if self._running:
                self._run_one_refresh()

    def _run_one_refresh(self) -> bool:
        """Execute a single refresh cycle. Returns True on success."""
        self._total_runs += 1
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")

        LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOG_DIR / f"refresh_{timestamp}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)

        try:
            logger.info("=== Refresh #%d starting ===", self._total_runs)
            pipeline = RefreshPipeline(self.config, self.db_path)
            summary = pipeline.refresh_all_forecasts()
            self._total_successes += 1
            self._last_failures_by_kind = summary.failure_counts()
            logger.info(
                "Refresh #%d OK: %d forecasts from %d/%d cities",
                self._total_runs,
                summary.forecasts_saved,
                summary.cities_succeeded,
                summary.cities_total,
            )
            return True

        except ForecasterError as e:
            self._total_failures += 1
            logger.error("Refresh #%d failed: %s", self._total_runs, e)
            return False

        except Exception:
            self._total_failures += 1
            logger.exception("Refresh #%d crashed", self._total_runs)
            return False

        finally:
            root_logger.removeHandler(file_handler)
            file_handler.close()
            self._rotate_logs()
            self._save_state()

    def _rotate_logs(self) -> None:
        """Keep only the most recent log files."""
        if not LOG_DIR.exists():
            return
        logs = sorted(LOG_DIR.glob("refresh_*.log"))
        if len(logs) > MAX_LOG_FILES:
            for old in logs[: len(logs) - MAX_LOG_FILES]:
                old.unlink(missing_ok=True)

    def _setup_signals(self) -> None:
        """Handle SIGTERM and SIGINT for graceful shutdown."""
        def _stop(signum: int, frame: object) -> None:
            sig_name = signal.Signals(signum).name
            logger.info("Received %s, shutting down gracefully...", sig_name)
            print(f"\nReceived {sig_name}, stopping...")
            self._running = False

        signal.signal(signal.SIGTERM, _stop)
        signal.signal(signal.SIGINT, _stop)

    def _check_not_already_running(self) -> None:
        """Prevent duplicate daemons."""
        if PID_FILE.exists():
            try:
                pid = int(PID_FILE.read_text().strip())
                os.kill(pid, 0)
                print(f"Daemon already running (pid {pid}). Stop it first:")
                print("   python -m forecaster daemon --stop")
                sys.exit(1)
            except (ProcessLookupError, ValueError):
                # Stale PID file
                PID_FILE.unlink(missing_ok=True)
            except PermissionError:
                print(f"Daemon may be running (pid {pid}), can't verify.")
                sys.exit(1)

    def _write_pid(self) -> None:
        PID_DIR.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text(str(os.getpid()))

    def _save_state(self) -> None:
        """Persist daemon stats for status reporting."""
        state = {
            "pid": os.getpid(),
            "started_at": self._started_at,
            "refresh_time": self.config.schedule.refresh_time,
            "next_run_at": self._next_run_at.isoformat() if self._next_run_at else None,
            "total_runs": self._total_runs,
            "total_successes": self._total_successes,
            "total_failures": self._total_failures,
            "last_city_failures": self._last_failures_by_kind,
            "last_update": datetime.now(UTC).isoformat(),
        }
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        STATE_FILE.write_text(json.dumps(state, indent=2))

    def _cleanup(self) -> None:
        """Remove PID file on exit."""
        PID_FILE.unlink(missing_ok=True)
        self._save_state()
        logger.info(
            "Daemon stopped: %d refreshes (%d ok, %d failed)",
            self._total_runs, self._total_successes, self._total_failures,
        )
        print(
            f"Daemon stopped: {self._total_runs} refreshes "
            f"({self._total_successes} ok, {self._total_failures} failed)"
        )


def stop_daemon() -> int:
    """Stop a running daemon by sending SIGTERM."""
    if not PID_FILE.exists():
        print("No daemon running (no PID file found)")
        return 1

    try:
        pid = int(PID_FILE.read_text().strip())
    except ValueError:
        print("Corrupt PID file, removing")
        PID_FILE.unlink(missing_ok=True)
        return 1

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        print(f"Daemon not running (stale pid {pid}), cleaning up")
        PID_FILE.unlink(missing_ok=True)
        STATE_FILE.unlink(missing_ok=True)
        return 0

    print(f"Stopping daemon (pid {pid})...")
    os.kill(pid, signal.SIGTERM)

    # A refresh in progress may take a while to finish
    for _ in range(60):
        time.sleep(1)
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            print("Daemon stopped")
            PID_FILE.unlink(missing_ok=True)
            return 0

    print("Daemon didn't stop in 60s, sending SIGKILL")
    os.kill(pid, signal.SIGKILL)
    PID_FILE.unlink(missing_ok=True)
    return 0


def daemon_status() -> int:
    """Print daemon status from state file."""
    if not STATE_FILE.exists():
        print("No daemon state found")
        return 1

    state = json.loads(STATE_FILE.read_text())
    pid = state.get("pid", "?")

    running = False
    try:
        os.kill(int(pid), 0)
        running = True
    except (ProcessLookupError, ValueError, TypeError):
        pass

    print(f"Daemon {'running' if running else 'stopped'}")
    print(f"  PID: {pid}")
    print(f"  Refresh time: {state.get('refresh_time', '?')}")
    print(f"  Next run: {state.get('next_run_at') or '?'}")
    print(f"  Started: {state.get('started_at', '?')}")
    print(f"  Total refreshes: {state.get('total_runs', 0)}")
    print(f"  Successes: {state.get('total_successes', 0)}")
    print(f"  Failures: {state.get('total_failures', 0)}")
    failures = state.get("last_city_failures") or {}
    if failures:
        detail = ", ".join(f"{v} {k}" for k, v in sorted(failures.items()))
        print(f"  Last city failures: {detail}")
    print(f"  Last update: {state.get('last_update', '?')}")
    return 0
