from __future__ import annotations

import logging
import queue
import subprocess
import threading
from collections import deque
from collections.abc import Iterable

from stayopen.config import StayOpenConfig
from stayopen.errors import InlineToolError, LaunchError, ReadError, StoppedError
from stayopen.framing import FrameReader
from stayopen.protocol import STAY_OPEN_ARGS, RequestFrame, inline_error, shutdown_frame

logger = logging.getLogger(__name__)

_EOF = object()


class StayOpen:
    """One exiftool process running in ``-stay_open`` mode.

    Requests are strictly serialized: the response to one request is fully read
    before the next request is written. Background threads own the pipes; the
    feeder writes queued requests to stdin, the reader splits stdout into frames.
    A stopped worker never restarts.
    """

    def __init__(
        self,
        executable: str = "exiftool",
        default_options: Iterable[str] = (),
        *,
        stop_timeout: float = 5.0,
        chunk_size: int = 65536,
    ):
        self.executable = executable
        self.default_options = tuple(default_options)
        self.stop_timeout = stop_timeout
        self.chunk_size = chunk_size
        self.proc: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._running = False
        self._closed = False
        self._requests: queue.Queue[bytes | None] = queue.Queue()
        self._results: queue.Queue = queue.Queue()
        self._threads: list[threading.Thread] = []
        self._stderr_tail: deque[str] = deque(maxlen=80)

    @classmethod
    def from_config(cls, cfg: StayOpenConfig) -> "StayOpen":
        return cls(cfg.executable, cfg.default_options, stop_timeout=cfg.stop_timeout, chunk_size=cfg.chunk_size)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pid(self) -> int | None:
        return self.proc.pid if self.proc else None

    def __repr__(self) -> str:
        state = "running" if self._running else "stopped"
        return f"<StayOpen {self.executable!r} pid={self.pid} {state}>"

    def __enter__(self) -> "StayOpen":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def start(self) -> "StayOpen":
        with self._lock:
            if self._running:
                return self
            if self._closed:
                raise StoppedError(f"stay-open worker for {self.executable!r} was stopped")
            try:
                proc = subprocess.Popen(
                    [self.executable, *STAY_OPEN_ARGS],
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                )
            except (OSError, ValueError) as exc:
                raise LaunchError(f"cannot launch {self.executable!r}: {exc}") from exc

            self.proc = proc
            threads = [
                threading.Thread(target=self._feed, name=f"stayopen-feed-{proc.pid}", daemon=True),
                threading.Thread(target=self._read, name=f"stayopen-read-{proc.pid}", daemon=True),
                threading.Thread(target=self._drain_stderr, name=f"stayopen-stderr-{proc.pid}", daemon=True),
            ]
            try:
                for thread in threads:
                    thread.start()
                    self._threads.append(thread)
            except RuntimeError as exc:
                self._abort_start(proc)
                raise LaunchError(f"cannot start pipe threads for {self.executable!r}: {exc}") from exc
            self._running = True
            logger.info("started %s -stay_open (pid %d)", self.executable, proc.pid)
        return self

    def _abort_start(self, proc: subprocess.Popen) -> None:
        self._closed = True
        self._requests.put(None)
        proc.kill()
        proc.wait()
        for thread in self._threads:
            thread.join()
        for pipe in (proc.stdin, proc.stdout, proc.stderr):
            if pipe and not pipe.closed:
                try:
                    pipe.close()
                except OSError as exc:
                    logger.debug("closing pipe of pid %d: %s", proc.pid, exc)
        logger.warning("killed %s (pid %d) after failed start", self.executable, proc.pid)

    def _feed(self) -> None:
        assert self.proc and self.proc.stdin
        stdin = self.proc.stdin
        try:
            while True:
                frame = self._requests.get()
                if frame is None:
                    break
                stdin.write(frame)
                stdin.flush()
            stdin.write(shutdown_frame())
            stdin.flush()
        except OSError as exc:
            logger.warning("write to %s (pid %d) failed: %s", self.executable, self.proc.pid, exc)
            self._results.put(ReadError(f"writing request to {self.executable} stdin failed: {exc}"))
        finally:
            try:
                stdin.close()
            except OSError as exc:
                logger.debug("closing stdin of pid %d: %s", self.proc.pid, exc)

    def _read(self) -> None:
        assert self.proc and self.proc.stdout
        try:
            for frame in FrameReader(self.proc.stdout, self.chunk_size):
                self._results.put(frame)
        except ReadError as exc:
            self._results.put(exc)
        except (OSError, ValueError) as exc:
            self._results.put(ReadError(f"reading {self.executable} stdout failed: {exc}"))
        else:
            self._results.put(_EOF)

    def _drain_stderr(self) -> None:
        assert self.proc and self.proc.stderr
        for line in self.proc.stderr:
            self._stderr_tail.append(line.decode("utf-8", errors="replace").rstrip())

    def extract(self, filename) -> bytes:
        """Run the default options against ``filename`` and return the raw response."""
        return self.extract_flags(filename)

    def extract_flags(self, filename, *options: str) -> bytes:
        with self._lock:
            if not self._running:
                raise StoppedError(f"stay-open worker for {self.executable!r} is stopped")
            request = RequestFrame.build(filename, self.default_options, options)
            # crash reports only carry stderr written for this request
            self._stderr_tail.clear()
            logger.debug("pid %d: request for %s %s", self.proc.pid, request.filename, " ".join(request.options))
            self._requests.put(request.encode())
            result = self._results.get()
            if not isinstance(result, bytes):
                self._shutdown_locked()
                cause = result if isinstance(result, BaseException) else None
                raise ReadError(self._failure_message(result)) from cause

        message = inline_error(result)
        if message is not None:
            raise InlineToolError(message, result)
        return result

    def _failure_message(self, result) -> str:
        if result is _EOF:
            message = f"{self.executable} exited before responding"
        else:
            message = f"response stream failed: {result}"
        logger.warning("%s (pid %s): %s", self.executable, self.pid, message)
        if self._stderr_tail:
            message += "; stderr tail:\n" + "\n".join(self._stderr_tail)
        return message

    def stop(self) -> None:
        """Ask exiftool to exit, reap it and join the pipe threads. Idempotent."""
        with self._lock:
            self._closed = True
            if not self._running:
                return
            self._shutdown_locked()

    def _shutdown_locked(self) -> None:
        assert self.proc
        proc = self.proc
        self._running = False
        self._closed = True
        self._requests.put(None)
        try:
            proc.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(
                "%s (pid %d) still running %.1fs after shutdown; killing", self.executable, proc.pid, self.stop_timeout
            )
            proc.kill()
            proc.wait()
        for thread in self._threads:
            thread.join()
        for pipe in (proc.stdout, proc.stderr):
            if pipe:
                pipe.close()
        logger.info("stopped %s (pid %d, exit code %s)", self.executable, proc.pid, proc.returncode)
