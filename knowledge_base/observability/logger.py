"""
Logger configuration.

Configures stdout logging once per Lambda container. CloudWatch picks up
stdout, so no extra handlers are installed.

Dependencies: logging (stdlib)
System role: Centralized logging configuration
"""

import logging
import sys

_CONFIGURED = False

NOISY_LOGGERS = ("urllib3", "botocore", "boto3", "pymongo", "langchain_aws")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure Python logging with ISO timestamp and structured format.

    Safe to call on every invocation: handlers are only installed once.

    Args:
        level: Root log level name
    """
    global _CONFIGURED

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    if _CONFIGURED:
        return

    # The Lambda runtime pre-installs a handler; replace it to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True

