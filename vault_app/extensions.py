# vault_app/extensions.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from apscheduler.schedulers.background import BackgroundScheduler


db = SQLAlchemy()
migrate = Migrate()
scheduler = BackgroundScheduler(daemon=True)

def init_extensions(app):
    # DB/Migrate
    db.init_app(app)
    migrate.init_app(app, db)
