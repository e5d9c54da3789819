"""Service declarations of the oVirt Engine API shipped with the package."""

from pathlib import Path

CATALOG_DIR = Path(__file__).resolve().parent
