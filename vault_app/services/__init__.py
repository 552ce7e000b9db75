# vault_app/services/__init__.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import current_app

from .analytics import VaultAnalytics
from .backup_service import BackupService
from .file_tracker import FileTracker
from .paths import PathResolver
from .quota_ledger import QuotaLedger
from .vault_manager import VaultManager


def _build_services(app) -> dict:
    """Monta os serviços a partir de app.config (injeção explícita, sem fachada)."""
    paths = PathResolver(app.config.get("BASE_DIR", app.root_path))
    tracker = FileTracker()
    vault = VaultManager.from_config(app.config, ledger=QuotaLedger(), tracker=tracker, paths=paths)
    backups = BackupService.from_config(app.config, vault=vault, paths=paths)
    return {
        "file_tracker": tracker,
        "vault": vault,
        "backups": backups,
        "vault_analytics": VaultAnalytics(),
    }

def init_vault(app):
    """Registra os serviços em app.extensions na inicialização da aplicação."""
    app.extensions.update(_build_services(app))

def rebuild_vault():
    """Reconstrói os serviços após mudar app.config (ex.: diretórios em testes)."""
    services = _build_services(current_app)
    current_app.extensions.update(services)
    return services["vault"]

def get_vault() -> VaultManager:
    vault = current_app.extensions.get("vault")
    if vault is None:
        vault = rebuild_vault()
    return vault

def get_backups() -> BackupService:
    backups = current_app.extensions.get("backups")
    if backups is None:
        rebuild_vault()
        backups = current_app.extensions["backups"]
    return backups

def get_analytics() -> VaultAnalytics:
    return current_app.extensions.get("vault_analytics") or VaultAnalytics()


__all__ = [
    "BackupService",
    "FileTracker",
    "PathResolver",
    "QuotaLedger",
    "VaultAnalytics",
    "VaultManager",
    "get_analytics",
    "get_backups",
    "get_vault",
    "init_vault",
    "rebuild_vault",
]
