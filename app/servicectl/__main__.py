"""Allow running servicectl as ``python -m servicectl``."""

from servicectl.cli.main import app

if __name__ == "__main__":
    app()
