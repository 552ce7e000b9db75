# vault_app/services/quota_ledger.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..exceptions import StorageNotFound
from ..extensions import db
from ..models import QuotaRecord
from ..utils import utcnow, new_refid


class QuotaLedger:
    """Acesso ao registro de cota (vault_quota) de cada conta."""

    def get(self, account_id: str) -> QuotaRecord | None:
        # sempre relê do banco: outra sessão pode ter mexido em used_bytes
        return db.session.execute(
            select(QuotaRecord)
            .where(QuotaRecord.account_id == account_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def require(self, account_id: str) -> QuotaRecord:
        rec = self.get(account_id)
        if rec is None:
            raise StorageNotFound(account_id)
        return rec

    def lock(self, account_id: str) -> QuotaRecord:
        """
        SELECT ... FOR UPDATE dentro da transação corrente.

        ``populate_existing`` força a releitura mesmo que a linha já esteja
        no identity map da sessão.
        """
        rec = db.session.execute(
            select(QuotaRecord)
            .where(QuotaRecord.account_id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if rec is None:
            raise StorageNotFound(account_id)
        return rec

    def upsert(self, account_id: str, quota_bytes: int) -> QuotaRecord:
        rec = self.get(account_id)
        if rec is None:
            rec = QuotaRecord(account_id=account_id, quota_bytes=quota_bytes, used_bytes=0)
            db.session.add(rec)
            try:
                db.session.commit()
                return rec
            except IntegrityError:
                # outra requisição criou a mesma conta no meio do caminho
                db.session.rollback()
                rec = self.require(account_id)

        db.session.execute(
            update(QuotaRecord)
            .where(QuotaRecord.account_id == account_id)
            .values(
                quota_bytes=quota_bytes,
                refid=new_refid(),
                version=QuotaRecord.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        db.session.refresh(rec)
        return rec

    def adjust_used(self, account_id: str, delta: int) -> None:
        """used_bytes += delta em uma única instrução (sem commit)."""
        db.session.execute(
            update(QuotaRecord)
            .where(QuotaRecord.account_id == account_id)
            .values(
                used_bytes=QuotaRecord.used_bytes + delta,
                version=QuotaRecord.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )

    def set_used(self, account_id: str, used_bytes: int) -> int:
        """Sobrescreve used_bytes sem olhar o valor anterior. Retorna linhas afetadas."""
        res = db.session.execute(
            update(QuotaRecord)
            .where(QuotaRecord.account_id == account_id)
            .values(
                used_bytes=used_bytes,
                version=QuotaRecord.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        return res.rowcount
