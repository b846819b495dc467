"""
Path construction and scoped reads under a configurable proc root.

Every read opens and closes its file inside a single call, so a polling loop
over thousands of PIDs cannot leak descriptors even when most reads fail.
OS errors are translated into the parser's exception taxonomy:

- FileNotFoundError / ProcessLookupError / NotADirectoryError -> ProcNotFoundError
- PermissionError -> ProcPermissionError
- anything else propagates as OSError
"""

import errno
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Union

from ..validation import ProcNotFoundError, ProcPermissionError

logger = logging.getLogger(__name__)

# errno values meaning "the target is gone". ESRCH shows up when a process
# exits while one of its /proc files is being read.
_VANISHED_ERRNOS = frozenset({errno.ENOENT, errno.ESRCH, errno.ENOTDIR})


@contextmanager
def _translate_os_errors(path: Path) -> Iterator[None]:
    try:
        yield
    except PermissionError as e:
        raise ProcPermissionError(f"Permission denied reading {path}", path=path) from e
    except OSError as e:
        if e.errno in _VANISHED_ERRNOS:
            raise ProcNotFoundError(f"{path} does not exist", path=path) from e
        raise


class ProcPathResolver:
    """
    Builds paths below a proc root and performs scoped reads.

    Args:
        proc_root: Base directory standing in for /proc.
    """

    def __init__(self, proc_root: Union[str, Path]):
        self.proc_root = Path(proc_root)

    def system_path(self, subpath: str) -> Path:
        """Path of a host-wide file, e.g. `{proc_root}/meminfo`."""
        return self.proc_root / subpath

    def pid_path(self, pid: int, subpath: str = "") -> Path:
        """Path of a per-process file, e.g. `{proc_root}/{pid}/net/dev`."""
        base = self.proc_root / str(pid)
        return base / subpath if subpath else base

    def read_text(self, path: Path) -> str:
        """
        Read a whole file as text.

        Raises:
            ProcNotFoundError: If the file is absent
            ProcPermissionError: If the file is unreadable
        """
        with _translate_os_errors(path):
            with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
                return f.read()

    def read_bytes(self, path: Path) -> bytes:
        """
        Read a whole file as raw bytes.

        Raises:
            ProcNotFoundError: If the file is absent
            ProcPermissionError: If the file is unreadable
        """
        with _translate_os_errors(path):
            with open(path, "rb") as f:
                return f.read()

    def read_lines(self, path: Path) -> List[str]:
        """
        Read a file and return its lines without trailing newlines.

        The file is read fully before parsing starts so the handle is closed
        before any grammar error can be raised.

        Raises:
            ProcNotFoundError: If the file is absent
            ProcPermissionError: If the file is unreadable
        """
        return self.read_text(path).splitlines()

    def read_link(self, path: Path) -> str:
        """
        Return the target of a symbolic link without following it.

        Raises:
            ProcNotFoundError: If the link is absent
            ProcPermissionError: If the link is unreadable
        """
        with _translate_os_errors(path):
            return os.readlink(path)
