"""Backup and restore of monitoring configuration.

Archives are gzip'd tarballs named ``monitoring-backup-YYYYmmdd-HHMMSS.tar.gz``.
A second archive in the same second gets a ``-N`` counter before the suffix.
"""

from __future__ import annotations

import logging
import posixpath
import tarfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath

from forumops._constants import BACKUP_PREFIX, BACKUP_SUFFIX, BACKUP_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)


class BackupError(Exception):
    """Raised when a backup cannot be created or restored."""

    pass


@dataclass
class BackupInfo:
    """An archive found in the backup directory."""

    path: Path
    size_bytes: int
    created: datetime
    sequence: int = 0

    @property
    def name(self) -> str:
        return self.path.name


def backup_name(now: datetime) -> str:
    return f"{BACKUP_PREFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}{BACKUP_SUFFIX}"


def _parse_name(name: str) -> tuple[datetime | None, int]:
    """Timestamp and same-second counter encoded in an archive name."""
    stamp = name[len(BACKUP_PREFIX) : -len(BACKUP_SUFFIX)]
    # Same-second archives carry a -N suffix
    width = len("YYYYmmdd-HHMMSS")
    stamp, extra = stamp[:width], stamp[width:]
    counter = 0
    if extra:
        if not extra.startswith("-") or not extra[1:].isdigit():
            return None, 0
        counter = int(extra[1:])
    try:
        return datetime.strptime(stamp, BACKUP_TIMESTAMP_FORMAT), counter
    except ValueError:
        return None, 0


def _arcname(path: Path, base_dir: Path) -> str:
    """Name stored inside the archive: relative to base_dir when possible."""
    try:
        return path.resolve().relative_to(base_dir.resolve()).as_posix()
    except ValueError:
        return path.name


def create_backup(
    paths: list[str],
    directory: str | Path,
    base_dir: str | Path = ".",
    now: datetime | None = None,
) -> Path:
    """Archive the given paths into a new timestamped tarball.

    Args:
        paths: Files or directories, relative to *base_dir* unless absolute
        directory: Where the archive is written (created if missing)
        base_dir: Root that relative paths are resolved against
        now: Timestamp for the archive name (defaults to the current time)

    Returns:
        Path of the created archive

    Raises:
        BackupError: If none of the paths exist
    """
    base = Path(base_dir)
    sources = []
    for p in paths:
        src = Path(p) if Path(p).is_absolute() else base / p
        if src.exists():
            sources.append(src)
        else:
            logger.warning("Backup path does not exist, skipping: %s", src)

    if not sources:
        raise BackupError(f"Nothing to back up: none of {', '.join(paths)} exist")

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)

    archive = out_dir / backup_name(now or datetime.now())
    stem = archive.name[: -len(BACKUP_SUFFIX)]
    counter = 1
    while archive.exists():
        archive = out_dir / f"{stem}-{counter}{BACKUP_SUFFIX}"
        counter += 1

    with tarfile.open(archive, "w:gz") as tar:
        for src in sources:
            name = _arcname(src, base)
            logger.debug("Adding %s as %s", src, name)
            tar.add(src, arcname=name)

    return archive


def list_backups(directory: str | Path) -> list[BackupInfo]:
    """Archives in *directory*, newest first."""
    out_dir = Path(directory)
    if not out_dir.is_dir():
        return []

    backups = []
    for path in out_dir.glob(f"{BACKUP_PREFIX}*{BACKUP_SUFFIX}"):
        stat = path.stat()
        created, sequence = _parse_name(path.name)
        backups.append(
            BackupInfo(
                path=path,
                size_bytes=stat.st_size,
                created=created or datetime.fromtimestamp(stat.st_mtime),
                sequence=sequence,
            )
        )

    backups.sort(key=lambda b: (b.created, b.sequence), reverse=True)
    return backups


def _check_member(member: tarfile.TarInfo) -> None:
    parts = PurePosixPath(member.name).parts
    if member.name.startswith("/") or ".." in parts:
        raise BackupError(f"Refusing to restore unsafe path: {member.name}")
    if member.issym() or member.islnk():
        # Symlinks resolve against their own directory, hard links against the archive root
        if member.issym():
            target = posixpath.join(posixpath.dirname(member.name), member.linkname)
        else:
            target = member.linkname
        target = posixpath.normpath(target)
        if member.linkname.startswith("/") or target == ".." or target.startswith("../"):
            raise BackupError(f"Refusing to restore link outside the archive: {member.name}")


def restore_backup(archive: str | Path, destination: str | Path = ".") -> list[str]:
    """Extract an archive over *destination*.

    Every member is checked before anything is written, so an unsafe archive
    leaves the destination untouched.

    Returns:
        Top-level names that were restored

    Raises:
        BackupError: If the archive is missing, unreadable or unsafe
    """
    path = Path(archive)
    if not path.is_file():
        raise BackupError(f"Backup archive not found: {path}")

    dest = Path(destination)
    dest.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(path, "r:*") as tar:
            members = tar.getmembers()
            for member in members:
                _check_member(member)
            tar.extractall(dest, members=members, filter="data")
    except tarfile.TarError as e:
        raise BackupError(f"Cannot read backup archive {path}: {e}")  # noqa: B904

    return sorted({PurePosixPath(m.name).parts[0] for m in members if m.name})


def prune_backups(directory: str | Path, keep: int) -> list[Path]:
    """Delete all but the newest *keep* archives.

    Returns:
        Paths that were removed
    """
    if keep < 1:
        raise ValueError("keep must be at least 1")

    removed = []
    for info in list_backups(directory)[keep:]:
        info.path.unlink()
        logger.debug("Pruned %s", info.path)
        removed.append(info.path)
    return removed
