# vault_app/jobs.py
# -*- coding: utf-8 -*-
from __future__ import annotations


def cleanup_backups_job(app):
    with app.app_context():
        from .services import get_backups
        n = get_backups().cleanup()
        app.logger.info("vault: limpeza agendada removeu %s backup(s)", n)


def purge_deleted_files_job(app):
    with app.app_context():
        from .services import get_vault
        days = int(app.config.get("VAULT_PURGE_AFTER_DAYS", 30))
        n = get_vault().get_file_tracker().purge_deleted(days)
        app.logger.info("vault: expurgo agendado removeu %s registro(s)", n)


def schedule_jobs(scheduler, app):
    # diariamente às 03:00 / 03:30
    scheduler.add_job(cleanup_backups_job, "cron", hour=3, minute=0, args=[app],
                      id="vault_cleanup_backups", replace_existing=True)
    scheduler.add_job(purge_deleted_files_job, "cron", hour=3, minute=30, args=[app],
                      id="vault_purge_deleted", replace_existing=True)
