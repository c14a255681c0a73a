"""
Run the API with uvicorn: `python -m jokes_api` (from the backend/ directory).

Host, port and log level come from the same settings the app uses.
"""

import uvicorn

from jokes_api.config import settings


def main() -> None:
    uvicorn.run(
        "jokes_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
