# (c) Copyright IBM Corp. 2025

import logging

logger = None


def get_standard_logger() -> logging.Logger:
    """
    Retrieves and configures a standard logger for the kubegraph package

    @return: Logger
    """
    standard_logger = logging.getLogger("kubegraph")

    ch = logging.StreamHandler()
    f = logging.Formatter(
        "%(asctime)s: %(process)d %(levelname)s %(name)s: %(message)s"
    )
    ch.setFormatter(f)
    standard_logger.addHandler(ch)
    standard_logger.setLevel(logging.DEBUG)
    return standard_logger


def update_log_level(options) -> None:
    """Uses the value in <options.log_level> to update the package logger"""
    if options is None or options.log_level not in [
        logging.DEBUG,
        logging.INFO,
        logging.WARN,
        logging.ERROR,
    ]:
        logger.warning("update_log_level: Unknown log level set")
        return

    logger.setLevel(options.log_level)


logger = get_standard_logger()
