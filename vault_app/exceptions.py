# vault_app/exceptions.py
# -*- coding: utf-8 -*-
from __future__ import annotations


class VaultError(Exception):
    """Base de todos os erros do vault."""


class StorageNotFound(VaultError):
    """Sem registro de cota, diretório de storage ou arquivo de backup."""

    def __init__(self, account_id: str | None = None, path: str | None = None):
        self.account_id = account_id
        self.path = path
        if path is not None:
            msg = f"Storage not found: {path}"
        else:
            msg = f"Storage not found for account: {account_id}"
        super().__init__(msg)


class QuotaExceeded(VaultError):
    def __init__(self, account_id: str, required: int, available: int):
        self.account_id = account_id
        self.required = int(required)
        self.available = int(available)
        super().__init__(
            f"Storage quota exceeded for account '{account_id}'. "
            f"Required: {self.required} bytes, Available: {self.available} bytes"
        )


class InvalidQuota(VaultError, ValueError):
    @classmethod
    def negative(cls, quota: int) -> "InvalidQuota":
        return cls(f"Quota cannot be negative: {quota}")

    @classmethod
    def zero(cls) -> "InvalidQuota":
        return cls("Quota must be greater than zero")

    @classmethod
    def exceeds_maximum(cls, quota: int, maximum: int) -> "InvalidQuota":
        return cls(f"Quota {quota}MB exceeds maximum allowed {maximum}MB")


class InvalidArgument(VaultError, ValueError):
    pass


class OperationFailure(VaultError, RuntimeError):
    """Falha de I/O de arquivo/zip. Sempre encadeada (raise ... from exc)."""
