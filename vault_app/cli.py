# vault_app/cli.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import shutil
import sys

import click
from flask import current_app
from flask.cli import AppGroup
from sqlalchemy import text

from .extensions import db
from .services import get_backups, get_vault
from .utils import MB_TO_BYTES, format_bytes


vault_cli = AppGroup("vault", help="Cotas e backups do storage por conta.")


def _fail(msg: str):
    click.echo(msg, err=True)
    sys.exit(1)


@vault_cli.command("allocate")
@click.argument("account")
@click.argument("quota_mb", type=int)
def allocate_cmd(account, quota_mb):
    """Define a cota (MB) de uma conta."""
    try:
        get_vault().allocate(account, quota_mb)
    except Exception as e:
        _fail(f"Falha ao alocar cota: {e}")
    click.echo(f"{quota_mb}MB alocados para a conta {account}.")


@vault_cli.command("usage")
@click.argument("account")
def usage_cmd(account):
    """Mostra o uso de storage de uma conta."""
    try:
        usage = get_vault().get_usage(account)
    except Exception as e:
        _fail(f"Falha ao consultar uso: {e}")

    click.echo(f"Conta:      {account}")
    click.echo(f"Usado:      {round(usage['used'] / MB_TO_BYTES, 2)} MB")
    click.echo(f"Cota:       {round(usage['quota'] / MB_TO_BYTES, 2)} MB")
    click.echo(f"Restante:   {round(usage['remaining'] / MB_TO_BYTES, 2)} MB")
    click.echo(f"Percentual: {usage['percentage']}%")
    if usage["percentage"] >= 90:
        click.echo("Atenção: storage quase cheio!")
    elif usage["percentage"] >= 80:
        click.echo("Storage acima de 80%.")
    else:
        click.echo("Uso de storage saudável.")


@vault_cli.command("recalc")
@click.argument("account")
def recalc_cmd(account):
    """Recalcula o uso a partir do disco."""
    total = get_vault().recalculate_usage(account)
    click.echo(f"Uso recalculado: {format_bytes(total)}")


@vault_cli.command("backup")
@click.argument("account")
def backup_cmd(account):
    """Cria um backup ZIP do storage da conta."""
    try:
        path = get_backups().create(account)
    except Exception as e:
        _fail(f"Falha ao criar backup: {e}")
    click.echo(f"Backup criado: {path}")
    click.echo(f"Tamanho: {format_bytes(path.stat().st_size)}")


@vault_cli.command("restore")
@click.argument("account")
@click.argument("archive")
def restore_cmd(account, archive):
    """Restaura um backup ZIP no storage da conta."""
    try:
        total = get_backups().restore(account, archive)
    except Exception as e:
        _fail(f"Falha ao restaurar backup: {e}")
    click.echo(f"Backup restaurado. Uso atual: {format_bytes(total)}")


@vault_cli.command("cleanup")
@click.option("--days", type=int, default=None, help="Idade mínima (dias); padrão = retenção configurada.")
def cleanup_cmd(days):
    """Remove backups antigos ou expirados."""
    n = get_backups().cleanup(days)
    click.echo(f"{n} backup(s) removido(s).")


@vault_cli.command("purge")
@click.option("--days", type=int, default=None, help="Idade mínima (dias); padrão = VAULT_PURGE_AFTER_DAYS.")
def purge_cmd(days):
    """Apaga de vez registros de arquivos removidos há mais de N dias."""
    if days is None:
        days = int(current_app.config.get("VAULT_PURGE_AFTER_DAYS", 30))
    n = get_vault().get_file_tracker().purge_deleted(days)
    click.echo(f"{n} registro(s) expurgado(s).")


@vault_cli.command("wipe")
@click.argument("account")
@click.option("--backup", "-b", "make_backup", is_flag=True, help="Cria backup antes de apagar.")
@click.option("--force", "-f", is_flag=True, help="Não pede confirmação.")
def wipe_cmd(account, make_backup, force):
    """Apaga todos os arquivos de uma conta."""
    click.echo(f"Isto apaga permanentemente todos os arquivos da conta {account}.")
    if not force and not click.confirm("Deseja continuar?", default=False):
        click.echo("Operação cancelada.")
        return

    vault = get_vault()
    try:
        if make_backup:
            path = get_backups().create(account)
            click.echo(f"Backup criado: {path}")
        storage = vault.get_storage_path(account)
        if storage.is_dir():
            shutil.rmtree(storage)
            storage.mkdir(parents=True, exist_ok=True)
        vault.recalculate_usage(account)
    except Exception as e:
        _fail(f"Falha ao apagar storage: {e}")
    click.echo(f"Storage da conta {account} apagado.")


def register_cli(app):
    @app.cli.command("init-db")
    def init_db_cmd():
        """Cria as tabelas (DEV/MVP). Para produção: use flask db upgrade."""
        with app.app_context():
            # sanity check
            db.session.execute(text("SELECT 1"))
            db.create_all()
            print("Tabelas criadas.")

    app.cli.add_command(vault_cli)
