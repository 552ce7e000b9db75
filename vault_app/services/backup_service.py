# vault_app/services/backup_service.py
# -*- coding: utf-8 -*-
"""
Backups em ZIP do storage de cada conta.

Um backup só ganha registro em ``vault_backup`` depois que o zip foi
fechado com sucesso; qualquer falha no empacotamento apaga o arquivo
parcial antes de propagar o erro.
"""
from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from flask import current_app
from sqlalchemy import and_, or_, select

from ..exceptions import OperationFailure, StorageNotFound
from ..extensions import db
from ..models import BackupRecord
from ..utils import utcnow
from .archive import ZipArchiveCodec
from .paths import PathResolver, walk_tree
from .vault_manager import VaultManager


class BackupService:
    def __init__(
        self,
        vault: VaultManager,
        paths: PathResolver,
        backup_root: str = "storage/vault-backups",
        retention_days: int = 30,
        compress: bool = True,
        codec=ZipArchiveCodec,
    ):
        self.vault = vault
        self.paths = paths
        self.backup_root = backup_root
        self.retention_days = retention_days
        self.compress = compress
        self.codec = codec

    @classmethod
    def from_config(cls, config, vault: VaultManager, paths: PathResolver | None = None) -> "BackupService":
        return cls(
            vault=vault,
            paths=paths or vault.paths,
            backup_root=config.get("VAULT_BACKUP_PATH", "storage/vault-backups"),
            retention_days=int(config.get("VAULT_BACKUP_RETENTION_DAYS", 30)),
            compress=bool(config.get("VAULT_ENABLE_COMPRESSION", True)),
        )

    def get_backup_directory(self) -> Path:
        return self.paths.base_path(self.backup_root)

    def resolve_path(self, record: BackupRecord) -> Path:
        return self.get_backup_directory() / record.backup_path

    def _expiry_for(self, created_at):
        if self.retention_days <= 0:
            return None  # nunca expira
        return created_at + timedelta(days=self.retention_days)

    # ------------------------------------------------------------------
    def create(self, account_id: str) -> Path:
        storage = self.vault.get_storage_path(account_id)
        if not storage.is_dir():
            raise StorageNotFound(account_id)

        backup_dir = self.get_backup_directory()
        backup_dir.mkdir(parents=True, exist_ok=True)

        created_at = utcnow()
        filename = f"{account_id}_{created_at.strftime('%Y-%m-%d_%H%M%S_%f')}.zip"
        target = backup_dir / filename

        archive = None
        try:
            archive = self.codec.create(target, compress=self.compress)
            archive.set_compression(self.compress)
            for entry in walk_tree(storage):
                if entry.is_dir:
                    archive.add_empty_dir(entry.relative)
                else:
                    archive.add_file(entry.absolute, entry.relative)
            archive.close()
        except Exception as e:
            if archive is not None:
                try:
                    archive.close()
                except Exception:
                    current_app.logger.debug("vault: zip parcial não fechou limpo", exc_info=True)
            if target.exists():
                target.unlink()
            current_app.logger.exception("vault: falha ao criar backup de %s", account_id)
            raise OperationFailure(f"Backup creation failed: {e}") from e

        rec = BackupRecord(
            account_id=account_id,
            backup_path=filename,
            backup_size=target.stat().st_size,
            created_at=created_at,
            expires_at=self._expiry_for(created_at),
        )
        try:
            db.session.add(rec)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            target.unlink(missing_ok=True)
            raise OperationFailure(f"Backup creation failed: {e}") from e

        current_app.logger.info("vault: backup %s criado (%s bytes)", filename, rec.backup_size)
        return target

    def restore(self, account_id: str, backup_path) -> int:
        backup_path = Path(backup_path)
        # nomes relativos valem só dentro do diretório de backups
        if not backup_path.is_absolute():
            backup_path = self.get_backup_directory() / backup_path
        if not backup_path.is_file():
            raise StorageNotFound(account_id, path=str(backup_path))

        storage = self.vault.get_storage_path(account_id)
        storage.mkdir(parents=True, exist_ok=True)

        try:
            with self.codec.open(backup_path) as archive:
                archive.extract_all(storage)
        except Exception as e:
            current_app.logger.exception("vault: falha ao restaurar %s", backup_path.name)
            raise OperationFailure(f"Restore failed: {e}") from e

        total = self.vault.recalculate_usage(account_id)
        current_app.logger.info("vault: backup %s restaurado para %s", backup_path.name, account_id)
        return total

    # ------------------------------------------------------------------
    def list(self, account_id: str) -> list[BackupRecord]:
        return list(db.session.execute(
            select(BackupRecord)
            .where(BackupRecord.account_id == account_id)
            .order_by(BackupRecord.created_at.desc(), BackupRecord.id.desc())
        ).scalars())

    def get(self, backup_id: int) -> BackupRecord | None:
        return db.session.get(BackupRecord, backup_id)

    def _remove(self, rec: BackupRecord) -> None:
        # arquivo primeiro, registro depois (sem transação entre os dois)
        path = self.resolve_path(rec)
        if path.exists():
            path.unlink()
        db.session.delete(rec)
        db.session.commit()

    def delete(self, backup_id: int) -> bool:
        rec = self.get(backup_id)
        if rec is None:
            return False
        self._remove(rec)
        return True

    def cleanup(self, older_than_days: int | None = None) -> int:
        days = self.retention_days if older_than_days is None else older_than_days
        now = utcnow()
        cutoff = now - timedelta(days=days)

        rows = list(db.session.execute(
            select(BackupRecord).where(or_(
                BackupRecord.created_at < cutoff,
                and_(BackupRecord.expires_at.is_not(None), BackupRecord.expires_at < now),
            ))
        ).scalars())

        for rec in rows:
            self._remove(rec)

        if rows:
            current_app.logger.info("vault: %s backup(s) removido(s) na limpeza", len(rows))
        return len(rows)
