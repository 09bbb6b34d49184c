"""
License server application built on FastAPI.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boundlic.common.config import Config
from boundlic.common.logging_utils import setup_logger
from boundlic.server.database import utcnow

from .routes import LicenseRoutes
from .services import LicenseService

if TYPE_CHECKING:
    from boundlic.common.interfaces import IAccessPolicy
    from boundlic.server.database import Database


class LicenseServer:
    """Main license server class: owns the app and its collaborators."""

    def __init__(
        self,
        config: Config | None = None,
        database: Database | None = None,
        access_policy: IAccessPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config or Config()
        self.logger = logging.getLogger(__name__)
        setup_logger(self.logger, self.config.LOG_LEVEL)
        self.server_host = self.config.SERVER_HOST
        self.server_port = self.config.SERVER_PORT

        self.service = LicenseService(
            config=self.config,
            database=database,
            access_policy=access_policy,
            clock=clock,
        )
        self.service.initialize()

        self.app = FastAPI(title=self.config.SERVICE_NAME, version=self.config.VERSION)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.CORS_ORIGINS,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self.routes = LicenseRoutes(self.service)
        self.routes.setup_routes(self.app)

        self.logger.info(
            "Server ready on http://%s:%s", self.server_host, self.server_port
        )
