# vault_app/services/file_tracker.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import hashlib
from datetime import timedelta
from pathlib import Path

from sqlalchemy import delete, func, select

from ..exceptions import StorageNotFound
from ..extensions import db
from ..models import FileRecord, STATUS_ACTIVE, STATUS_DELETED
from ..utils import utcnow

HASH_ALGORITHM = "sha256"


class FileTracker:
    """Registro individual de arquivos enviados (vault_file)."""

    def track(self, account_id: str, file_path: str, size: int, file_hash: str | None = None) -> FileRecord:
        # sem commit: roda dentro da transação do VaultManager
        rec = FileRecord(
            account_id=account_id,
            file_path=file_path,
            file_size=size,
            file_hash=file_hash,
            status=STATUS_ACTIVE,
            uploaded_at=utcnow(),
        )
        db.session.add(rec)
        return rec

    def latest_active(self, account_id: str, file_path: str) -> FileRecord | None:
        return db.session.execute(
            select(FileRecord)
            .where(
                FileRecord.account_id == account_id,
                FileRecord.file_path == file_path,
                FileRecord.status == STATUS_ACTIVE,
            )
            .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def untrack(self, account_id: str, file_path: str) -> FileRecord | None:
        rec = self.latest_active(account_id, file_path)
        if rec is None:
            return None
        rec.mark_deleted()
        db.session.add(rec)
        return rec

    def get_files(self, account_id: str, include_deleted: bool = False) -> list[FileRecord]:
        q = select(FileRecord).where(FileRecord.account_id == account_id)
        if not include_deleted:
            q = q.where(FileRecord.status == STATUS_ACTIVE)
        q = q.order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
        return list(db.session.execute(q).scalars())

    def get_file_count(self, account_id: str) -> int:
        return db.session.execute(
            select(func.count(FileRecord.id)).where(
                FileRecord.account_id == account_id,
                FileRecord.status == STATUS_ACTIVE,
            )
        ).scalar_one()

    def find_duplicates(self, file_hash: str) -> list[FileRecord]:
        return list(db.session.execute(
            select(FileRecord)
            .where(FileRecord.file_hash == file_hash, FileRecord.status == STATUS_ACTIVE)
            .order_by(FileRecord.uploaded_at.asc(), FileRecord.id.asc())
        ).scalars())

    def calculate_hash(self, file_path: str | Path) -> str:
        fp = Path(file_path)
        if not fp.is_file():
            raise StorageNotFound(path=str(fp))
        h = hashlib.new(HASH_ALGORITHM)
        with open(fp, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                h.update(chunk)
        return h.hexdigest()

    def purge_deleted(self, older_than_days: int = 30) -> int:
        cutoff = utcnow() - timedelta(days=older_than_days)
        res = db.session.execute(
            delete(FileRecord)
            .where(
                FileRecord.status == STATUS_DELETED,
                FileRecord.deleted_at.is_not(None),
                FileRecord.deleted_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        return res.rowcount or 0
