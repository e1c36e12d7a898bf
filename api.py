# api.py

import uvicorn

from searchsync.config import get_settings
from searchsync.container import build_container
from searchsync.interface.api import create_app
from searchsync.logging_utils import setup_logging


settings = get_settings()
setup_logging(settings.log_level)

container = build_container(settings)
app = create_app(container)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
