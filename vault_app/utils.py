# vault_app/utils.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import secrets
from datetime import datetime, timezone

MB_TO_BYTES = 1024 * 1024


def utcnow() -> datetime:
    # datetime "naive" em UTC, igual ao que as colunas DateTime guardam
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_refid() -> str:
    return secrets.token_hex(16)


def format_bytes(num: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(num)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2)} {units[i]}"
