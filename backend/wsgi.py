# backend/wsgi.py
from vidly import create_app

app = create_app()
