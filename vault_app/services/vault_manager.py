# vault_app/services/vault_manager.py
# -*- coding: utf-8 -*-
"""
Contabilidade de cota por conta.

Só ``track_upload`` garante o invariante ``used_bytes <= quota_bytes``;
``can_upload`` é uma consulta sem lock, útil para recusar cedo um upload
que não cabe, mas que pode perder a corrida para outro upload simultâneo.
"""
from __future__ import annotations

from pathlib import Path

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from ..exceptions import InvalidArgument, InvalidQuota, OperationFailure, QuotaExceeded
from ..extensions import db
from ..models import FileRecord
from ..utils import MB_TO_BYTES
from .file_tracker import FileTracker
from .paths import PathResolver, directory_size
from .quota_ledger import QuotaLedger


class VaultManager:
    def __init__(
        self,
        ledger: QuotaLedger,
        tracker: FileTracker,
        paths: PathResolver,
        storage_root: str = "storage/vault",
        default_quota_mb: int = 1024,
        max_quota_mb: int = 0,
        file_tracking: bool = True,
        max_retries: int = 5,
    ):
        self.ledger = ledger
        self.tracker = tracker
        self.paths = paths
        self.storage_root = storage_root
        self.default_quota_mb = default_quota_mb
        self.max_quota_mb = max_quota_mb
        self.file_tracking = file_tracking
        self.max_retries = max_retries

    @classmethod
    def from_config(cls, config, ledger=None, tracker=None, paths=None) -> "VaultManager":
        return cls(
            ledger=ledger or QuotaLedger(),
            tracker=tracker or FileTracker(),
            paths=paths or PathResolver(config.get("BASE_DIR", ".")),
            storage_root=config.get("VAULT_STORAGE_PATH", "storage/vault"),
            default_quota_mb=int(config.get("VAULT_DEFAULT_QUOTA_MB", 1024)),
            max_quota_mb=int(config.get("VAULT_MAX_QUOTA_MB", 0)),
            file_tracking=bool(config.get("VAULT_ENABLE_FILE_TRACKING", True)),
            max_retries=int(config.get("VAULT_TRACK_UPLOAD_RETRIES", 5)),
        )

    def get_file_tracker(self) -> FileTracker:
        return self.tracker

    # ------------------------------------------------------------------
    # cota
    # ------------------------------------------------------------------
    def allocate(self, account_id: str, quota_mb: int | None = None) -> None:
        quota_mb = self.default_quota_mb if quota_mb is None else int(quota_mb)
        if quota_mb < 0:
            raise InvalidQuota.negative(quota_mb)
        # o máximo configurado é só referência; não bloqueia a alocação
        if self.max_quota_mb and quota_mb > self.max_quota_mb:
            current_app.logger.warning(
                "vault: cota de %sMB para %s acima do máximo sugerido (%sMB)",
                quota_mb, account_id, self.max_quota_mb,
            )
        self.ledger.upsert(account_id, quota_mb * MB_TO_BYTES)
        current_app.logger.info("vault: conta %s com cota de %sMB", account_id, quota_mb)

    def get_usage(self, account_id: str) -> dict:
        q = self.ledger.require(account_id)
        used = int(q.used_bytes)
        total = int(q.quota_bytes)
        return {
            "used": used,
            "quota": total,
            "remaining": max(0, total - used),
            "percentage": round(used / total * 100, 2) if total > 0 else 0,
        }

    def is_full(self, account_id: str) -> bool:
        usage = self.get_usage(account_id)
        return usage["used"] >= usage["quota"]

    def get_remaining_space(self, account_id: str) -> int:
        return self.get_usage(account_id)["remaining"]

    def can_upload(self, account_id: str, size: int) -> bool:
        usage = self.get_usage(account_id)
        return usage["used"] + int(size) <= usage["quota"]

    # ------------------------------------------------------------------
    # uploads / remoções
    # ------------------------------------------------------------------
    def track_upload(self, account_id: str, file_path: str, size: int,
                     file_hash: str | None = None) -> FileRecord | None:
        if size is None or int(size) <= 0:
            raise InvalidArgument("File size must be greater than zero")
        size = int(size)

        attempts = max(1, self.max_retries)
        for attempt in range(1, attempts + 1):
            try:
                quota = self.ledger.lock(account_id)
                used = int(quota.used_bytes)
                limit = int(quota.quota_bytes)
                new_used = used + size
                if new_used > limit:
                    raise QuotaExceeded(account_id, size, limit - used)

                quota.used_bytes = new_used
                rec = None
                if self.file_tracking:
                    rec = self.tracker.track(account_id, file_path, size, file_hash)
                db.session.commit()
                return rec
            except StaleDataError:
                # outra transação gravou a linha entre a leitura e o UPDATE
                db.session.rollback()
                current_app.logger.debug(
                    "vault: conflito de versão em %s (tentativa %s/%s)", account_id, attempt, attempts
                )
            except QuotaExceeded as e:
                db.session.rollback()
                current_app.logger.warning("vault: upload recusado (%s): %s", file_path, e)
                raise
            except Exception:
                db.session.rollback()
                raise

        raise OperationFailure(
            f"Could not account upload for '{account_id}' after {attempts} attempts"
        )

    def track_deletion(self, account_id: str, file_path: str) -> FileRecord | None:
        try:
            rec = self.tracker.untrack(account_id, file_path)
            if rec is None:
                db.session.commit()
                return None
            self.ledger.adjust_used(account_id, -int(rec.file_size))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        # sem clamp em zero: valor negativo indica divergência com o disco
        q = self.ledger.get(account_id)
        if q is not None and q.used_bytes < 0:
            current_app.logger.warning(
                "vault: uso negativo para %s (%s bytes); rode recalculate_usage", account_id, q.used_bytes
            )
        return rec

    def recalculate_usage(self, account_id: str) -> int:
        storage = self.get_storage_path(account_id)
        total = directory_size(storage)

        before = self.ledger.get(account_id)
        previous = int(before.used_bytes) if before is not None else None
        rows = self.ledger.set_used(account_id, total)
        if not rows:
            current_app.logger.warning("vault: recalculo sem registro de cota para %s", account_id)
        elif previous != total:
            current_app.logger.warning(
                "vault: uso de %s corrigido de %s para %s bytes", account_id, previous, total
            )
        return total

    # ------------------------------------------------------------------
    # caminhos e hashes
    # ------------------------------------------------------------------
    def get_storage_path(self, account_id: str) -> Path:
        account = "" if account_id is None else str(account_id)
        if account.strip() in ("", ".", "..") or any(c in account for c in ("/", "\\", "\x00")):
            raise InvalidArgument(f"Invalid account id: {account_id!r}")
        root = self.paths.base_path(self.storage_root)
        storage = root / account
        # a pasta da conta fica estritamente abaixo da raiz do storage
        if root.resolve() not in storage.resolve().parents:
            raise InvalidArgument(f"Invalid account id: {account_id!r}")
        return storage

    def calculate_hash(self, file_path) -> str:
        return self.tracker.calculate_hash(file_path)

    def find_duplicates(self, file_hash: str) -> list[FileRecord]:
        return self.tracker.find_duplicates(file_hash)
