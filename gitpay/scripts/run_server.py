#!/usr/bin/env python3
"""
Run the GitPay badge API with uvicorn.

Host and port come from ServerConfig (HOST / PORT environment variables).
"""

import logging
import sys

import uvicorn

from gitpay.api import create_app
from gitpay.config import ConfigError, get_config

logger = logging.getLogger(__name__)


def main() -> int:
    """Validate configuration and serve until interrupted."""
    try:
        config = get_config()
        config.validate_configuration()
    except ConfigError as e:
        logger.error(f"❌ Configuration validation failed: {e}")
        return 1

    server = config.server
    logger.info("=" * 80)
    logger.info(f"🚀 GitPay API on http://{server.HOST}:{server.PORT} ({config.chains.NETWORK})")
    logger.info("=" * 80)

    uvicorn.run(
        create_app(),
        host=server.HOST,
        port=server.PORT,
        log_level=config.base.LOG_LEVEL.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
