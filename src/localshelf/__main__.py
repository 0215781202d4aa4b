"""Run the localshelf server: ``python -m localshelf``."""

import uvicorn

from localshelf.config import get_settings
from localshelf.main import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,  # configure_logging() in the lifespan owns the handlers
    )


if __name__ == "__main__":
    main()
