# backend/wsgi.py
from avenue import create_app

app = create_app()
