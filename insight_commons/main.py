"""Run the Insight Commons API server."""

import os

import uvicorn

from .api.app import app


def main() -> None:
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
