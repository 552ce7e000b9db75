# vault_app/models/__init__.py
# -*- coding: utf-8 -*-
from .quota import QuotaRecord
from .file import FileRecord, STATUS_ACTIVE, STATUS_DELETED
from .backup import BackupRecord


__all__ = [
    "QuotaRecord",
    "FileRecord",
    "BackupRecord",
    "STATUS_ACTIVE",
    "STATUS_DELETED",
]
