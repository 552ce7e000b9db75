# vault_app/__init__.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import os

from flask import Flask
from config import Config, TestingConfig, StagingConfig, ProductionConfig
from .extensions import scheduler, init_extensions
from .cli import register_cli
from .jobs import schedule_jobs
from .services import init_vault
from .blueprints.vault import bp as vault_bp

_CONFIGS = {
    "testing": TestingConfig,
    "staging": StagingConfig,
    "production": ProductionConfig,
}

def create_app(config_object: type[Config] | None = None) -> Flask:
    app = Flask(__name__)

    if config_object is None:
        app_env = os.getenv("APP_ENV", "").lower()
        config_object = _CONFIGS.get(app_env, Config)
    app.config.from_object(config_object)

    # Extensões (DB/Migrate/Scheduler)
    init_extensions(app)

    # Serviços do vault: ficam disponíveis em app.extensions
    init_vault(app)         # app.extensions["vault"], ["backups"], ["file_tracker"]

    # Blueprints
    app.register_blueprint(vault_bp)
    # CLI (ex.: flask init-db, flask vault usage <conta>)
    register_cli(app)

    # Scheduler (limpeza de backups + expurgo de registros removidos)
    if not app.config.get("TESTING") and os.getenv("DISABLE_SCHEDULER") != "1":
        schedule_jobs(scheduler, app)
        if not scheduler.running:
            scheduler.start()

    return app
