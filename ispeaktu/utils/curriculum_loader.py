"""
Curriculum loader utility for iSpeaktu.

Loads a YAML curriculum file (materials with nested lessons and questions)
and normalizes it into Material models.
"""

from pathlib import Path
from typing import Any
import yaml

from ispeaktu.classroom.normalizer import normalize_curriculum
from ispeaktu.schemas import Material


def load_curriculum_data(file_path: Path) -> list[dict[str, Any]]:
    """
    Read the raw material list from a YAML file.

    The file holds either a list of materials or a mapping with a
    `materials` key.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        ValueError: If the document has neither shape
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Curriculum file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("materials")
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of materials in {file_path}")
    return data


def load_curriculum_file(file_path: Path) -> list[Material]:
    """Load and normalize a YAML curriculum into ordered Material models."""
    return normalize_curriculum(load_curriculum_data(file_path))
