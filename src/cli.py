import argparse
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from src.config import CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH, Settings, parse_bind_addr
from src.logging_config import configure_logging

logger = logging.getLogger(__name__)

EXAMPLE_CONFIG = """It should look like

   bindaddr: ':9090'
   allowedauthorizationtokens:
     - secrettoken
"""

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Attendance registration server")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to configuration file")
    args = parser.parse_args(argv)

    if not os.path.exists(args.config):
        print(f"Could not find config file: {args.config}")
        print(EXAMPLE_CONFIG)
        return 1

    # uvicorn imports src.main in-process, its Settings() picks the path up from here
    os.environ[CONFIG_PATH_ENV] = args.config

    settings = Settings()
    configure_logging(settings.log_level)
    host, port = parse_bind_addr(settings.bind_addr)

    logger.info("Listening on %s", settings.bind_addr)
    uvicorn.run("src.main:app", host=host, port=port, log_config=None)
    return 0

if __name__ == "__main__":
    sys.exit(main())
