"""Allows ``python -m gnss_good.app``."""
from .main import app

if __name__ == "__main__":
    app()
