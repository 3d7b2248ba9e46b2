"""
principal-auth entry point

Runs the HTTP adapter via `python -m principal_auth`. Configuration comes
from PRINCIPAL_AUTH_* environment variables (see core.config).
"""

import logging
import sys

from aiohttp import web

from .core.auth_service import AuthService
from .core.config import AuthConfig, ConfigError
from .persistence.audit_store import AuditLogger
from .persistence.principal_store import JSONPrincipalStore
from .transport.http_app import create_app


def setup_logging():
    """Configure logging to stderr"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def main():
    """Main entry point"""
    setup_logging()
    logger = logging.getLogger("main")

    try:
        config = AuthConfig.from_env()
    except ConfigError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(2)

    service = AuthService.from_config(
        config,
        store=JSONPrincipalStore(config.data_dir),
        audit=AuditLogger(config.data_dir),
    )

    logger.info(f"Starting principal-auth on {config.host}:{config.port}...")
    web.run_app(create_app(service), host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
