"""
ProxyServer class for CLI control of the FastAPI application.
"""
import logging
import os
import uvicorn

import settings
from .app import app

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False, log_file: str = "gateway_debug.log") -> None:
    """Configure the root logger

    Debug mode logs everything to the console and appends to ``log_file``;
    otherwise INFO and above go to the console only.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if debug:
        log_path = os.path.abspath(log_file)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.info(f"Debug logging enabled - appending to {log_path}")

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


class ProxyServer:
    """Proxy server wrapper for CLI control"""

    def __init__(self, debug: bool = False, bind_address: str = None, port: int = None):
        self.server = None
        self.config = None
        self.debug = debug
        self.bind_address = bind_address or settings.BIND_ADDRESS
        self.port = port or settings.PORT

    def run(self):
        """Run the proxy server (blocking)"""
        logger.info(f"Starting GigaChat Gateway Proxy on http://{self.bind_address}:{self.port}")
        logger.info("Available endpoints: /v1/chat/completions (OpenAI-compatible), /health, /auth/status")
        if settings.STREAM_TRACE_ENABLED:
            logger.warning(
                "Stream tracing is ENABLED - raw SSE lines will be written inside '%s'",
                settings.STREAM_TRACE_DIR,
            )
        self.config = uvicorn.Config(
            app,
            host=self.bind_address,
            port=self.port,
            log_level="debug" if self.debug else settings.LOG_LEVEL,
            access_log=False  # Reduce noise in CLI
        )
        self.server = uvicorn.Server(self.config)
        self.server.run()

    def stop(self):
        """Stop the proxy server"""
        if self.server:
            self.server.should_exit = True
