"""Allow running as `python -m release_train`."""

from release_train.cli import app

if __name__ == "__main__":
    app()
