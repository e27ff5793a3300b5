"""A log file writer that rotates by day and by size, zipping old files."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
import threading
import zipfile
from datetime import datetime, timedelta
from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)

SIZE_MIB = 1024 * 1024
DEFAULT_MAX_AGE = 31
DEFAULT_MAX_SIZE = 64 * SIZE_MIB
FLUSH_INTERVAL = 5.0

_BUFFER_SIZE = 4096
_NAME_TIME_FORMAT = ".%Y-%m-%d-%H%M%S.%f"
_ZIP_SUFFIX = ".zip"


def _split_ext(base: str) -> tuple[str, str]:
    dot = base.rfind(".")
    if dot < 0:
        return base, ""
    return base[:dot], base[dot:]


class RotatingWriter:
    """Appends bytes to a log file, rotating it daily and when it grows too large.

    A rotated file is renamed with its creation time, zipped next to the log
    and the uncompressed copy removed. Zipped backups older than ``max_age``
    days are deleted when the day changes.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = os.fspath(path)
        self._dir = os.path.dirname(self.path) or "."
        name, suffix = _split_ext(os.path.basename(self.path))
        self._name = name
        self._suffix = suffix or ".log"
        self._max_age = DEFAULT_MAX_AGE
        self._max_size = DEFAULT_MAX_SIZE
        self._console = False
        self._size = 0
        self._created = datetime.now()
        self._file: BinaryIO | None = None
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        os.makedirs(self._dir, exist_ok=True)
        self._start_daemon()

    @property
    def max_age(self) -> int:
        """Days to keep zipped backups; zero or less keeps them forever."""
        return self._max_age

    @max_age.setter
    def max_age(self, days: int) -> None:
        with self._lock:
            self._max_age = days

    @property
    def max_size(self) -> int:
        """Largest size in bytes of one log file; values below 1 are ignored."""
        return self._max_size

    @max_size.setter
    def max_size(self, size: int) -> None:
        if size < 1:
            return
        with self._lock:
            self._max_size = size

    @property
    def console(self) -> bool:
        """Whether written data is copied to standard error as well."""
        return self._console

    @console.setter
    def console(self, enabled: bool) -> None:
        with self._lock:
            self._console = enabled

    def _start_daemon(self) -> None:
        if self._stop_event is not None and not self._stop_event.is_set():
            return
        stop_event = threading.Event()
        self._stop_event = stop_event

        def _loop() -> None:
            while not stop_event.wait(FLUSH_INTERVAL):
                self.flush()

        threading.Thread(target=_loop, name="rotating-flush", daemon=True).start()

    @staticmethod
    def _to_stderr(data: bytes) -> None:
        buffer = getattr(sys.stderr, "buffer", None)
        if buffer is not None:
            sys.stderr.flush()
            buffer.write(data)
            buffer.flush()
        else:
            sys.stderr.write(data.decode("utf-8", errors="replace"))

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Write ``data`` and return the number of bytes taken."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        with self._lock:
            if self._console:
                self._to_stderr(payload)
            if self._file is None:
                try:
                    self._rotate()
                except OSError:
                    self._to_stderr(payload)
                    raise
                self._start_daemon()

            if self._created.date() != datetime.now().date():
                threading.Thread(target=self._remove_expired, daemon=True).start()
                self._rotate()

            if self._size + len(payload) + len(self._buffer) >= self._max_size:
                self._rotate()

            self._buffer.extend(payload)
            if len(self._buffer) >= _BUFFER_SIZE:
                self._flush_locked()
            self._size += len(payload)
            return len(payload)

    def _flush_locked(self) -> None:
        if self._file is None or not self._buffer:
            return
        self._file.write(bytes(self._buffer))
        self._buffer.clear()

    def _rotate(self) -> None:
        now = datetime.now()
        if self._file is not None:
            self._flush_locked()
            os.fsync(self._file.fileno())
            self._file.close()
            self._file = None
            backup = self._name + self._created.strftime(_NAME_TIME_FORMAT)
            backup_path = os.path.join(self._dir, backup + self._suffix)
            try:
                os.replace(self.path, backup_path)
            except OSError:
                pass
            else:
                try:
                    zip_to_file(os.path.join(self._dir, backup + _ZIP_SUFFIX), backup_path)
                except OSError as exc:
                    logger.error("%s", exc)
                else:
                    os.remove(backup_path)
            self._size = 0

        self._created = now
        try:
            info = os.stat(self.path)
        except OSError:
            pass
        else:
            self._size = info.st_size
            self._created = datetime.fromtimestamp(info.st_mtime)
        self._file = open(self.path, "ab", buffering=0)

    def _name_to_time(self, name: str) -> datetime:
        stamp = name.removeprefix(os.path.basename(self._name)).removesuffix(_ZIP_SUFFIX)
        return datetime.strptime(stamp, _NAME_TIME_FORMAT)

    def _remove_expired(self) -> None:
        """Delete zipped backups older than ``max_age`` days."""
        if self._max_age <= 0:
            return
        cutoff = datetime.now() - timedelta(days=self._max_age)
        try:
            entries = list(os.scandir(self._dir))
        except OSError:
            return
        for entry in entries:
            if entry.is_dir():
                continue
            try:
                stamp = self._name_to_time(entry.name)
            except ValueError:
                continue
            if stamp < cutoff:
                try:
                    os.remove(entry.path)
                except OSError:
                    pass

    def flush(self) -> None:
        """Push buffered data to the file."""
        with self._lock:
            self._flush_locked()

    def close(self) -> None:
        """Flush and close the file; a later write opens it again."""
        with self._lock:
            self._flush_locked()
            if self._stop_event is not None:
                self._stop_event.set()
            if self._file is None:
                return
            file, self._file = self._file, None
            try:
                os.fsync(file.fileno())
            finally:
                file.close()

    def __enter__(self) -> "RotatingWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def zip_to_file(dst: str | os.PathLike[str], src: str | os.PathLike[str]) -> None:
    """Compress the file or directory ``src`` into a new zip file ``dst``."""
    with open(os.path.normpath(os.fspath(dst)), "wb") as out:
        zip_path(out, src)


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def zip_path(dst: BinaryIO, src: str | os.PathLike[str]) -> None:
    """Write a deflated zip archive of the file or directory ``src`` to ``dst``.

    Entry names start at the last component of ``src``.
    """
    source = os.path.normpath(os.fspath(src))
    base = os.path.basename(source)
    os.stat(source)

    with zipfile.ZipFile(dst, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in _walk(source):
            name = path
            index = name.find(base)
            if index > -1:
                name = name[index:]
            name = name.strip(os.sep).replace("\\", "/")
            mode = os.lstat(path).st_mode
            is_dir = stat.S_ISDIR(mode)
            if is_dir:
                name += "/"
            info = zipfile.ZipInfo.from_file(path, name)
            info.compress_type = zipfile.ZIP_DEFLATED
            if stat.S_ISREG(mode):
                with open(path, "rb") as reader, archive.open(info, "w") as writer:
                    shutil.copyfileobj(reader, writer)
            else:
                archive.writestr(info, b"")