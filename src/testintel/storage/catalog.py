"""Loading test case metadata from a JSON catalog."""

import json
from pathlib import Path

from testintel.storage.models import TestCase


def load_catalog(path: Path | str) -> list[TestCase]:
    """Load test cases from a JSON file.

    The file holds either a list of test case objects or an object with a
    ``test_cases`` list. Each entry needs at least ``id`` and ``name``.

    Raises:
        FileNotFoundError: If the catalog file does not exist
        ValueError: If the file is not valid JSON or an entry is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Test case catalog not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in test case catalog {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("test_cases", [])
    if not isinstance(data, list):
        raise ValueError(f"Test case catalog must be a list: {path}")

    test_cases = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or "id" not in entry or "name" not in entry:
            raise ValueError(f"Catalog entry {index} must be an object with 'id' and 'name'")
        try:
            test_cases.append(TestCase.from_dict(entry))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Catalog entry {index} is malformed: {e}") from e

    return test_cases


def save_catalog(test_cases: list[TestCase], path: Path | str) -> Path:
    """Write test cases to a JSON catalog file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([tc.to_dict() for tc in test_cases], indent=2), encoding="utf-8")
    return path
