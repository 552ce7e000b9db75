# vault_app/models/backup.py
from __future__ import annotations
from ..extensions import db
from ..utils import utcnow, new_refid

class BackupRecord(db.Model):
    __tablename__ = "vault_backup"
    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.String(64), index=True, nullable=False)
    refid = db.Column(db.String(64), nullable=False, unique=True, index=True, default=new_refid)
    backup_path = db.Column(db.String(500), nullable=False)   # nome do zip dentro do diretório de backups
    backup_size = db.Column(db.BigInteger, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    expires_at = db.Column(db.DateTime, nullable=True, index=True)  # None = nunca expira

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refid": self.refid,
            "account_id": self.account_id,
            "backup_path": self.backup_path,
            "backup_size": self.backup_size,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
