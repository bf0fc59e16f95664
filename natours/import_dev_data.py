"""Load or wipe development tour data.

Usage:
    python -m natours.import_dev_data --import path/to/tours.json
    python -m natours.import_dev_data --delete
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from natours.core.logging_config import setup_logging
from natours.database import SessionLocal, init_db
from natours.models.tour import Tour
from natours.repositories.tours import tours
from natours.schemas.tour import TourCreate

logger = logging.getLogger(__name__)


def import_tours(db, path: Path) -> int:
    payloads = TypeAdapter(list[TourCreate]).validate_python(json.loads(path.read_text(encoding='utf-8')))
    for payload in payloads:
        tours.create(db, payload)
    return len(payloads)


def delete_tours(db) -> int:
    # Bypasses the secret-tour filter so every row goes.
    removed = 0
    for tour in db.query(Tour).all():
        db.delete(tour)
        removed += 1
    db.commit()
    return removed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--import', dest='import_path', type=Path, help='JSON file with a list of tours')
    group.add_argument('--delete', action='store_true', help='delete every tour')
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    db = SessionLocal()
    try:
        if args.delete:
            logger.info('Deleted %d tours', delete_tours(db))
        else:
            logger.info('Loaded %d tours from %s', import_tours(db, args.import_path), args.import_path)
    except (OSError, json.JSONDecodeError, PydanticValidationError) as exc:
        logger.error('Import failed: %s', exc)
        return 1
    finally:
        db.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
