from .app import run_app
