# backend/wsgi.py
from farmbook import create_app

app = create_app()
