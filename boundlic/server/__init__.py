"""
Entry point for the license server.
"""

import logging

import uvicorn

from boundlic.common.config import Config
from boundlic.common.logging_utils import LOG_FORMAT

from .core import LicenseServer


def start_server(config: Config | None = None) -> None:
    """Start the license server."""
    if config is None:
        config = Config()
    logging.basicConfig(level=config.LOG_LEVEL, format=LOG_FORMAT)
    server = LicenseServer(config=config)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)
