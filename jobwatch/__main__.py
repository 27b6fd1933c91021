"""
Entry point for running jobwatch via `python -m jobwatch`.

Starts the FastAPI server with uvicorn.
"""

import uvicorn

from .config import config


def main():
    """Run the jobwatch server."""
    uvicorn.run(
        "jobwatch.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
