"""Natours command line interface.

Examples
--------
natours import-data --path dev-data/tours-simple.json
natours delete-data
natours serve --port 3000
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List

from pydantic import ValidationError

from natours.commons.daos.tour_dao import TourDAO
from natours.commons.natours_dataclasses.tour import TourCreate, validation_message
from natours.commons.natours_logger import NatoursLogger
from natours.configs import DEV_DATA_PATH, WEBSERVER_HOST, WEBSERVER_PORT


def load_dev_tours(path) -> List[Dict]:
    """Read a JSON array of tours and validate each one."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON array of tours.")
    docs = []
    for i, item in enumerate(raw):
        try:
            docs.append(TourCreate.model_validate(item).to_document())
        except ValidationError as exc:
            raise ValueError(f"Tour #{i} in {path} is invalid. {validation_message(exc)}") from exc
    return docs


def import_data(path=None, dao: TourDAO = None) -> int:
    """Load the dev-data file into the tours collection."""
    logger = NatoursLogger()
    docs = load_dev_tours(path or DEV_DATA_PATH)
    dao = dao or TourDAO.get_instance()
    dao.ensure_indexes()
    inserted = dao.insert_many(docs)
    logger.info(f"Data successfully loaded: {inserted} tours.")
    return inserted


def delete_data(dao: TourDAO = None) -> int:
    """Remove every tour from the collection."""
    logger = NatoursLogger()
    dao = dao or TourDAO.get_instance()
    deleted = dao.delete_all()
    logger.info(f"Data successfully deleted: {deleted} tours.")
    return deleted


def serve(host=None, port=None):
    """Run the webservice with uvicorn."""
    import uvicorn

    uvicorn.run("natours.webservice.main:app", host=host or WEBSERVER_HOST, port=port or WEBSERVER_PORT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="natours", description="Natours tours API tools.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import-data", help="Load dev-data tours into MongoDB.")
    import_parser.add_argument("--path", default=None, help=f"JSON file to import (default: {DEV_DATA_PATH}).")

    subparsers.add_parser("delete-data", help="Delete all tours from MongoDB.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "import-data":
            import_data(args.path)
        elif args.command == "delete-data":
            delete_data()
        elif args.command == "serve":
            serve(args.host, args.port)
    except ValueError as e:
        NatoursLogger().error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
