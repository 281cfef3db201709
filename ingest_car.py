"""Ingest one car folder: ``<folder>/car.txt`` plus its photos.

Usage: python ingest_car.py incoming/NR-0001
"""
import argparse
import re
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def natural_key(name):
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def load_folder(folder: Path):
    """Read the description and the supported photos in natural filename order."""
    from storefront.images import ImageUpload
    from storefront.storage import content_type_for, is_supported_image

    car_text = (folder / "car.txt").read_text(encoding="utf-8")
    names = sorted(
        (p.name for p in folder.iterdir() if p.is_file() and is_supported_image(p.name)),
        key=natural_key,
    )
    files = [ImageUpload(name, (folder / name).read_bytes(), content_type_for(name)) for name in names]
    return car_text, files


def main(argv=None):
    parser = argparse.ArgumentParser(description="Ingest a car folder (car.txt + images).")
    parser.add_argument("folder", help="folder containing car.txt and image files")
    args = parser.parse_args(argv)

    from storefront.db import Base, engine, get_store
    from storefront.errors import StorefrontError
    from storefront.services import IngestFailure, ingest_car
    from storefront.storage import get_object_store
    import storefront.models  # noqa: F401

    folder = Path(args.folder).resolve()
    try:
        car_text, files = load_folder(folder)
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    Base.metadata.create_all(bind=engine)
    try:
        result = ingest_car(get_store(), get_object_store(), car_text, files)
    except (IngestFailure, StorefrontError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print(f"HINT: {e.hint}", file=sys.stderr)
        return 1

    print(f"Created car id: {result.car_id}")
    print(f"Inserted {result.inserted_car_images} car_images rows")
    if result.logging_warning:
        print(f"WARNING: {result.logging_warning}")
    print("DONE")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
