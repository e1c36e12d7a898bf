# main.py

from searchsync.config import get_settings
from searchsync.interface.cli import app
from searchsync.logging_utils import setup_logging


def main() -> None:
    setup_logging(get_settings().log_level)
    app()


if __name__ == "__main__":
    main()
