#!/usr/bin/env python3
from dotenv import load_dotenv

load_dotenv()

from fleetcore_backend import create_app

# Procfile: `web: gunicorn wsgi:app`
app = create_app()
