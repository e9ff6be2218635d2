from pathlib import Path
from typing import Any, Optional

from sqlguide._serialization import decode_json

__all__ = ("open_fixture",)


def open_fixture(fixtures_path: "Path", fixture_name: str, *, type: Optional[Any] = None) -> Any:  # noqa: A002
    """Loads JSON file with the specified fixture name

    Args:
        fixtures_path: The directory to look for fixtures in.
        fixture_name (str): The fixture name to load.
        type: Optional type the fixture is decoded and validated into.

    Raises:
        FileNotFoundError: Fixtures not found.

    Returns:
        Any: The parsed JSON data
    """
    fixture = Path(fixtures_path) / f"{fixture_name}.json"
    if fixture.exists():
        return decode_json(fixture.read_bytes(), type=type)
    msg = f"Could not find the {fixture_name} fixture"
    raise FileNotFoundError(msg)
