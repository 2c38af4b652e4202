#!/usr/bin/env python3
"""
seed_curriculum.py - Load a YAML curriculum into the local SQLite store.

Materials, lessons and questions are upserted by id, so re-running the
script after editing the YAML updates the existing rows. Progress and
reminders are never touched.

Usage:
  python scripts/seed_curriculum.py
  python scripts/seed_curriculum.py --input data/sample_curriculum.yaml --output data/ispeaktu.db
"""

import argparse
import logging
import sys
from pathlib import Path

# Project root for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

import yaml

from ispeaktu.classroom.store import SQLiteStore
from ispeaktu.errors import DataUnavailable
from ispeaktu.utils.curriculum_loader import load_curriculum_file

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Seed the SQLite store with a YAML curriculum",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=PROJECT_ROOT / "data" / "sample_curriculum.yaml",
        help="Path to curriculum YAML file"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=PROJECT_ROOT / "data" / "ispeaktu.db",
        help="Output database path"
    )

    args = parser.parse_args()

    logger.info(f"Loading curriculum from {args.input}...")
    try:
        materials = load_curriculum_file(args.input)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Could not load curriculum: {e}")
        sys.exit(1)

    lesson_count = sum(len(m.lessons) for m in materials)
    question_count = sum(len(l.questions) for m in materials for l in m.lessons)
    logger.info(f"  {len(materials)} materials, {lesson_count} lessons, {question_count} questions")

    store = SQLiteStore(args.output)
    try:
        store.seed_curriculum(materials)
    except DataUnavailable as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Seeded {args.output}")


if __name__ == "__main__":
    main()
