"""Stellix entry point."""

import uvicorn

from stellix.api.app import app
from stellix.config import Config

if __name__ == "__main__":
    uvicorn.run(app, host=Config.API_HOST, port=Config.API_PORT)
