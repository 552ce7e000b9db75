# vault_app/decorators.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import os
from functools import wraps
from flask import current_app, jsonify, request

from .exceptions import QuotaExceeded


def _upload_size(file_storage) -> int:
    # content_length nem sempre vem preenchido no multipart
    if file_storage.content_length:
        return int(file_storage.content_length)
    stream = file_storage.stream
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size

def resolve_account_id(view_kwargs: dict | None = None) -> str | None:
    header = current_app.config.get("VAULT_ACCOUNT_HEADER", "X-Account-ID")
    account = request.headers.get(header)
    if not account and view_kwargs:
        account = view_kwargs.get("account_id")
    return str(account) if account else None

def quota_required(view_func):
    """
    Pré-checagem consultiva de cota para rotas de upload.

    Responde 413 quando a soma dos arquivos enviados não cabe na cota.
    Quem garante o limite de fato é VaultManager.track_upload.
    """
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not request.files:
            return view_func(*args, **kwargs)

        account_id = resolve_account_id(kwargs)
        if not account_id:
            return view_func(*args, **kwargs)

        total = sum(_upload_size(f) for _, files in request.files.lists() for f in files)

        from .services import get_vault
        try:
            if not get_vault().can_upload(account_id, total):
                return jsonify({
                    "error": "Storage quota exceeded",
                    "message": "Insufficient storage space for this upload",
                }), 413
        except QuotaExceeded as e:
            return jsonify({"error": "Storage quota exceeded", "message": str(e)}), 413
        except Exception as e:
            current_app.logger.error("vault: pré-checagem de cota falhou para %s: %s", account_id, e)

        return view_func(*args, **kwargs)
    return wrapper
