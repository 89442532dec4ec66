"""Entry point for ``python -m cassio``."""

from cassio.cli import app

if __name__ == "__main__":
    app()
