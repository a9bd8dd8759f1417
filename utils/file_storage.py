"""
Local file utilities.
Generation logs are kept in a local JSON file; material uploads get a
randomized object path before they are sent to the storage bucket.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime
import logging
import uuid

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
GENERATION_LOGS_FILE = Path(os.getenv("GENERATION_LOGS_FILE", BASE_DIR / "question_generation_logs.json"))
MATERIALS_PREFIX = "learning-materials"


def generate_uuid() -> str:
    """Generate unique ID for table rows"""
    return str(uuid.uuid4())


def build_material_path(filename: str) -> str:
    """
    Randomized bucket path for an uploaded material, keeping the extension.
    e.g. "week1.pdf" -> "learning-materials/3f2a...c1.pdf"
    """
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{MATERIALS_PREFIX}/{uuid.uuid4().hex}.{ext}"


def read_json_file(filepath: Path) -> Optional[Dict[str, Any]]:
    """Read JSON file, return None if not found or invalid"""
    try:
        if not filepath.exists():
            return None
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {filepath}: {e}")
        return None


def write_json_file(filepath: Path, data: Dict[str, Any]) -> bool:
    """Write data to JSON file atomically"""
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_file = filepath.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)
        temp_file.replace(filepath)
        return True
    except OSError as e:
        logger.error(f"Error writing {filepath}: {e}")
        return False


def append_to_json_list(filepath: Path, item: Dict[str, Any]) -> bool:
    """Append item to JSON list file (creates if not exists)"""
    data = read_json_file(filepath) or {"items": []}
    if "items" not in data:
        data["items"] = []
    data["items"].append(item)
    return write_json_file(filepath, data)


class GenerationLogger:
    """Append question generation runs to the local JSON log"""

    def __init__(self, filepath: Optional[Path] = None):
        self.filepath = filepath or GENERATION_LOGS_FILE

    def log_generation(self, entry: Dict[str, Any]) -> bool:
        record = {"timestamp": datetime.now().isoformat(), **entry}
        return append_to_json_list(self.filepath, record)
