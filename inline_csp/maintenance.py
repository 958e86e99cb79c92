# inline_csp/maintenance.py
# Maintenance flag + code rollback orchestration.
#
# run_rollback(): maintenance ON -> CodeRollback(identifier) -> maintenance OFF,
# the last step runs no matter how the rollback ends.

from __future__ import annotations

import logging
import tarfile
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


class MaintenanceMode:
    """File-flag maintenance switch; the flag's existence means "on"."""

    def __init__(self, flag_path: PathLike):
        self.flag_path = Path(flag_path)

    def is_on(self) -> bool:
        return self.flag_path.is_file()

    def set(self, enabled: bool) -> None:
        if enabled:
            self.flag_path.parent.mkdir(parents=True, exist_ok=True)
            self.flag_path.touch(exist_ok=True)
            log.info("Maintenance mode enabled (%s)", self.flag_path)
        else:
            self.flag_path.unlink(missing_ok=True)
            log.info("Maintenance mode disabled")


class CodeRollback(Protocol):
    def code_rollback(self, identifier: str) -> None: ...


class TarballCodeRollback:
    """
    Restores a code backup archive (tar, tar.gz, tgz) from backup_dir over target_dir.
    identifier is the archive file name without any path.
    """

    def __init__(self, backup_dir: PathLike, target_dir: PathLike):
        self.backup_dir = Path(backup_dir)
        self.target_dir = Path(target_dir)

    def _archive_path(self, identifier: str) -> Path:
        name = (identifier or "").strip()
        if not name or Path(name).name != name or name in {".", ".."}:
            raise ValueError(f"Backup identifier must be a bare file name, got {identifier!r}")
        path = self.backup_dir / name
        if not path.is_file():
            raise FileNotFoundError(f"The rollback file does not exist: {path}")
        return path

    def code_rollback(self, identifier: str) -> None:
        archive = self._archive_path(identifier)
        self.target_dir.mkdir(parents=True, exist_ok=True)
        log.info("Restoring code from %s into %s", archive, self.target_dir)
        with tarfile.open(archive) as tar:
            tar.extractall(self.target_dir, filter="data")
        log.info("Code rollback from %s complete", archive.name)


def run_rollback(
    maintenance: MaintenanceMode,
    rollback: CodeRollback,
    identifier: Optional[str],
    echo: Callable[[str], None] = log.info,
) -> bool:
    """
    Returns True when the rollback (if requested) finished without error.
    Failures are reported through echo/log and never leave maintenance on.
    """
    ok = True
    try:
        echo("Enabling maintenance mode")
        maintenance.set(True)
        if identifier:
            rollback.code_rollback(identifier)
    except Exception as exc:
        ok = False
        log.exception("Rollback failed")
        echo(f"Rollback failed: {exc}")
    finally:
        echo("Disabling maintenance mode")
        maintenance.set(False)
    return ok
