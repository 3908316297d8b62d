"""Result files: collision free names, exclusive creation, atomic rewrites."""

from __future__ import annotations

import os
import pickle
import random
import socket
import string
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock, Timeout

from evoengine.errors import PersistenceError

MAX_TRIES = 10
ANYTIME_FILE = "anytimeResult.pkl"


def make_filename(prefix: str = "data", ext: str = ".dat", sep: str = "_") -> str:
    """``prefix_YYYYmmdd_HHMMSS_host_pid_pad_frac.ext``."""
    now = datetime.now()
    pad = "".join(random.choices(string.ascii_lowercase, k=6))  # nosec B311
    parts = [
        prefix,
        now.strftime(f"%Y%m%d{sep}%H%M%S"),
        socket.gethostname(),
        str(os.getpid()),
        pad,
        f"{now.microsecond:06d}",
    ]
    return sep.join(parts) + ext


def create_exclusive_file(directory: Path | str = ".", prefix: str = "data", ext: str = ".dat") -> Path:
    """Create a new empty file under a name no other process holds.

    Each candidate name is guarded by a ``.lck`` file taken without waiting;
    a held lock or an existing file means another name is tried.
    """
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)
    for _ in range(MAX_TRIES):
        path = root / make_filename(prefix=prefix, ext=ext)
        lock_path = Path(f"{path}.lck")
        lock = FileLock(str(lock_path), timeout=0)
        try:
            lock.acquire()
        except Timeout:
            continue
        try:
            if path.exists():
                continue
            try:
                path.touch(exist_ok=False)
            except FileExistsError:
                continue
            return path
        finally:
            lock.release()
            lock_path.unlink(missing_ok=True)
    raise PersistenceError(f"Cannot create an exclusive {prefix} file in {root} after {MAX_TRIES} tries")


def write_pickle(obj: Any, path: Path) -> None:
    with path.open("wb") as handle:
        pickle.dump(obj, handle, protocol=pickle.HIGHEST_PROTOCOL)


def save_exclusive(obj: Any, directory: Path | str, prefix: str, ext: str = ".pkl") -> Path:
    path = create_exclusive_file(directory, prefix=prefix, ext=ext)
    write_pickle(obj, path)
    return path


def save_anytime_result(result: Any, directory: Path | str, filename: str = ANYTIME_FILE) -> Path:
    """Atomically replace the anytime result file under ``directory``."""
    root = Path(directory)
    root.mkdir(parents=True, exist_ok=True)
    target = root / filename
    tmp_path = root / f"tmp0{filename}"
    write_pickle(result, tmp_path)
    try:
        os.replace(tmp_path, target)
    except OSError as exc:
        raise PersistenceError(f"Renaming {tmp_path} to {target} failed") from exc
    return target


def load_result(path: Path | str) -> Any:
    """Load a result written by this module. Only load files you trust."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Result file not found: {source}")
    return pickle.loads(source.read_bytes())  # nosec B301 - files written by save_exclusive


def latest_anytime_result(directory: Path | str) -> Optional[Any]:
    target = Path(directory) / ANYTIME_FILE
    return load_result(target) if target.exists() else None


__all__ = [
    "ANYTIME_FILE",
    "MAX_TRIES",
    "create_exclusive_file",
    "latest_anytime_result",
    "load_result",
    "make_filename",
    "save_anytime_result",
    "save_exclusive",
    "write_pickle",
]
