# vault_app/wsgi.py
from vault_app import create_app

app = create_app()
