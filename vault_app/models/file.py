# vault_app/models/file.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from ..extensions import db
from ..utils import utcnow, new_refid

STATUS_ACTIVE = "active"
STATUS_DELETED = "deleted"


class FileRecord(db.Model):
    __tablename__ = "vault_file"
    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.String(64), index=True, nullable=False)
    refid = db.Column(db.String(64), nullable=False, unique=True, index=True, default=new_refid)
    file_path = db.Column(db.String(500), nullable=False)       # relativo ao storage da conta
    file_size = db.Column(db.BigInteger, nullable=False, default=0)
    file_hash = db.Column(db.String(64), index=True)            # sha256 (hex)
    status = db.Column(db.String(16), nullable=False, default=STATUS_ACTIVE, index=True)  # active|deleted
    uploaded_at = db.Column(db.DateTime, default=utcnow, index=True)
    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    __table_args__ = (
        db.Index("ix_vault_file_account_path", "account_id", "file_path"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def mark_deleted(self) -> None:
        # Active -> Deleted (nunca volta)
        if not self.is_active:
            return
        self.status = STATUS_DELETED
        self.deleted_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refid": self.refid,
            "account_id": self.account_id,
            "file_path": self.file_path,
            "file_size": self.file_size,
            "file_hash": self.file_hash,
            "status": self.status,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
