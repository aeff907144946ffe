from __future__ import annotations

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the MCP stdio protocol, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
