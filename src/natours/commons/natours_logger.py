"""Natours logger module."""

import logging

from natours.configs import (
    LOG_FILE_LEVEL,
    LOG_FILE_PATH,
    LOG_STREAM_LEVEL,
    PROJECT_NAME,
)


class NatoursLogger(object):
    """Process-wide logger shared by the DAO, webservice and CLI."""

    _instance = None

    @classmethod
    def _build_logger(cls):
        logger = logging.getLogger(PROJECT_NAME)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        formatter = logging.Formatter("[%(name)s][%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] %(message)s")

        if LOG_STREAM_LEVEL != "DISABLE":
            stream_handler = logging.StreamHandler()
            stream_handler.setLevel(getattr(logging, LOG_STREAM_LEVEL, logging.INFO))
            stream_handler.setFormatter(formatter)
            logger.addHandler(stream_handler)

        if LOG_FILE_LEVEL != "DISABLE":
            file_handler = logging.FileHandler(LOG_FILE_PATH, delay=True, mode="a+")
            file_handler.setLevel(getattr(logging, LOG_FILE_LEVEL, logging.DEBUG))
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        if not logger.handlers:
            logger.addHandler(logging.NullHandler())

        return logger

    def __new__(cls, *args, **kwargs) -> logging.Logger:
        """Return the shared ``logging.Logger``, creating it on first use."""
        if not cls._instance:
            cls._instance = cls._build_logger()
        return cls._instance
