# vault_app/services/analytics.py
# -*- coding: utf-8 -*-
from __future__ import annotations

from collections import OrderedDict
from datetime import datetime

from sqlalchemy import case, func, select

from ..extensions import db
from ..models import FileRecord, QuotaRecord, STATUS_ACTIVE

TIERS = ("Error", "0-25%", "25-50%", "50-75%", "75-90%", "90-100%+")


def _usage_percent():
    return QuotaRecord.used_bytes * 100.0 / QuotaRecord.quota_bytes


class VaultAnalytics:
    """Relatórios somente-leitura sobre vault_quota / vault_file."""

    def platform_overview(self) -> dict:
        row = db.session.execute(
            select(
                func.count(QuotaRecord.id),
                func.coalesce(func.sum(QuotaRecord.quota_bytes), 0),
                func.coalesce(func.sum(QuotaRecord.used_bytes), 0),
                func.avg(case((QuotaRecord.quota_bytes > 0, _usage_percent()), else_=0)),
            )
        ).one()
        total_accounts, total_quota, total_used, avg_pct = row
        return {
            "total_accounts": int(total_accounts or 0),
            "total_quota_bytes": int(total_quota or 0),
            "total_used_bytes": int(total_used or 0),
            "avg_usage_percent": round(float(avg_pct or 0), 2),
            "free_space_bytes": int((total_quota or 0) - (total_used or 0)),
        }

    def top_accounts(self, limit: int = 10) -> list[QuotaRecord]:
        return list(db.session.execute(
            select(QuotaRecord).order_by(QuotaRecord.used_bytes.desc()).limit(limit)
        ).scalars())

    def usage_distribution(self) -> dict[str, int]:
        pct = _usage_percent()
        tier = case(
            (QuotaRecord.quota_bytes == 0, "Error"),
            (pct < 25, "0-25%"),
            (pct < 50, "25-50%"),
            (pct < 75, "50-75%"),
            (pct < 90, "75-90%"),
            else_="90-100%+",
        ).label("tier")
        rows = db.session.execute(
            select(tier, func.count(QuotaRecord.id)).group_by(tier)
        ).all()
        return {t: int(c) for t, c in rows}

    def upload_trends(self, start: datetime, end: datetime, interval: str = "day") -> list[dict]:
        # agrupado em Python: DATE_FORMAT/strftime variam por banco
        fmt = "%Y-%m" if interval == "month" else "%Y-%m-%d"
        rows = db.session.execute(
            select(FileRecord.uploaded_at, FileRecord.file_size)
            .where(
                FileRecord.status == STATUS_ACTIVE,
                FileRecord.uploaded_at >= start,
                FileRecord.uploaded_at <= end,
            )
            .order_by(FileRecord.uploaded_at.asc())
        ).all()

        buckets: "OrderedDict[str, dict]" = OrderedDict()
        for uploaded_at, size in rows:
            key = uploaded_at.strftime(fmt)
            b = buckets.setdefault(key, {"period": key, "bytes": 0, "count": 0})
            b["bytes"] += int(size or 0)
            b["count"] += 1
        return list(buckets.values())

    def at_risk_accounts(self, threshold_percent: float = 90.0) -> list[QuotaRecord]:
        pct = _usage_percent()
        return list(db.session.execute(
            select(QuotaRecord)
            .where(QuotaRecord.quota_bytes > 0, pct >= threshold_percent)
            .order_by(pct.desc())
        ).scalars())
