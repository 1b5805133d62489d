"""Run the Parley API server: ``python -m parley``."""

import uvicorn

from parley.api.dependencies import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "parley.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
