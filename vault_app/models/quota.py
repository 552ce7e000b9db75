# vault_app/models/quota.py
from __future__ import annotations
from ..extensions import db
from ..utils import utcnow, new_refid

class QuotaRecord(db.Model):
    __tablename__ = "vault_quota"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    refid = db.Column(db.String(64), nullable=False, unique=True, index=True, default=new_refid)

    quota_bytes = db.Column(db.BigInteger, nullable=False, default=0)   # capacidade
    used_bytes = db.Column(db.BigInteger, nullable=False, default=0)    # consumo contabilizado

    # contador de versão: vira compare-and-swap quando o banco ignora FOR UPDATE (sqlite)
    version = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<QuotaRecord {self.account_id} {self.used_bytes}/{self.quota_bytes}>"
