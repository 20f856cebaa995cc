"""
HostServer class for CLI control of the FastAPI application.
"""
import logging
import os
from typing import Optional

import uvicorn
from rich.logging import RichHandler

from settings import BIND_ADDRESS, LOG_LEVEL, PORT
from .app import create_app
from .bootstrap import HostServices

logger = logging.getLogger(__name__)

DEBUG_LOG_FILE = "specmanager_debug.log"


class HostServer:
    """Host server wrapper for CLI control"""

    def __init__(
        self,
        debug: bool = False,
        bind_address: Optional[str] = None,
        port: Optional[int] = None,
        services: Optional[HostServices] = None,
    ):
        self.server = None
        self.config = None
        self.debug = debug
        self.bind_address = bind_address or BIND_ADDRESS
        self.port = port or PORT
        self.services = services

        # Configure debug logging if enabled
        if debug:
            self._setup_debug_logging()

    def _setup_debug_logging(self):
        """Route all loggers at DEBUG to the debug log file and a rich console"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # Clear existing handlers to avoid duplicates
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        # File handler for the debug log, append mode
        log_file = os.path.abspath(DEBUG_LOG_FILE)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

        # Rich console handler
        console_handler = RichHandler(rich_tracebacks=True, show_path=False)
        console_handler.setLevel(logging.DEBUG)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(console_handler)

        logger.info(f"Debug logging enabled - appending to {log_file}")

    def run(self):
        """Serve the app with uvicorn until interrupted (blocking)"""
        logger.info(f"Starting SpecManager host on http://{self.bind_address}:{self.port}")
        logger.info("Available endpoints: /bridge (WebSocket), /oauth-callback, /health")
        self.config = uvicorn.Config(
            create_app(self.services),
            host=self.bind_address,
            port=self.port,
            log_level="debug" if self.debug else LOG_LEVEL,
            access_log=False  # Requests are logged by the middleware
        )
        self.server = uvicorn.Server(self.config)
        self.server.run()

    def stop(self):
        """Ask uvicorn to exit its serve loop"""
        if self.server:
            self.server.should_exit = True
