"""Configuration module."""

import os
from importlib import resources

import yaml

SETTINGS_PATH = os.getenv("NATOURS_SETTINGS_PATH", None)


def _load_settings(path=None):
    if path is None:
        with resources.files("natours").joinpath("resources/sample_settings.yaml").open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


settings = _load_settings(SETTINGS_PATH)

##########################
#  Project Settings      #
##########################

PROJECT_NAME = settings.get("project", {}).get("name", "natours")
DEV_DATA_PATH = settings.get("project", {}).get("dev_data_path", "dev-data/tours-simple.json")

##########################
#  Log Settings          #
##########################

_log_settings = settings.get("log", {})
LOG_FILE_PATH = _log_settings.get("log_path", "default")
if LOG_FILE_PATH == "default":
    LOG_FILE_PATH = f"{PROJECT_NAME}.log"
LOG_FILE_LEVEL = str(_log_settings.get("log_file_level", "disable")).upper()
LOG_STREAM_LEVEL = str(os.getenv("NATOURS_LOG_LEVEL", _log_settings.get("log_stream_level", "info"))).upper()

##########################
#  MongoDB Settings      #
##########################

_mongo_settings = settings.get("mongodb", {})
MONGO_URI = os.getenv("NATOURS_MONGO_URI", _mongo_settings.get("uri", "mongodb://localhost:27017"))
MONGO_DB = os.getenv("NATOURS_MONGO_DB", _mongo_settings.get("db", PROJECT_NAME))
MONGO_TOURS_COLLECTION = _mongo_settings.get("tours_collection", "tours")

##########################
#  Web Server Settings   #
##########################

_webserver_settings = settings.get("web_server", {})
WEBSERVER_HOST = os.getenv("NATOURS_WEBSERVER_HOST", _webserver_settings.get("host", "0.0.0.0"))
WEBSERVER_PORT = int(os.getenv("NATOURS_WEBSERVER_PORT", _webserver_settings.get("port", 3000)))
DEFAULT_PAGE_LIMIT = int(_webserver_settings.get("default_page_limit", 100))
MAX_PAGE_LIMIT = _webserver_settings.get("max_page_limit", None)
if MAX_PAGE_LIMIT is not None:
    MAX_PAGE_LIMIT = int(MAX_PAGE_LIMIT)
