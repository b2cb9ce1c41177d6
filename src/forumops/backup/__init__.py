"""Monitoring configuration backups."""

from .archive import (
    BackupError,
    BackupInfo,
    backup_name,
    create_backup,
    list_backups,
    prune_backups,
    restore_backup,
)

__all__ = [
    "BackupError",
    "BackupInfo",
    "backup_name",
    "create_backup",
    "list_backups",
    "prune_backups",
    "restore_backup",
]
