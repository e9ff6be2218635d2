"""General utility functions."""

from importlib.util import find_spec
from pathlib import Path

__all__ = ("module_to_os_path",)


def module_to_os_path(dotted_path: str = "sqlguide") -> "Path":
    """Find Module to OS Path.

    Return a path to the base directory of the package or the module
    specified by `dotted_path`.

    Args:
        dotted_path: The path to the module. Defaults to "sqlguide".

    Raises:
        TypeError: The module could not be found.

    Returns:
        Path: The path to the module.
    """
    try:
        if (src := find_spec(dotted_path)) is None:  # pragma: no cover
            msg = f"Couldn't find the path for {dotted_path}"
            raise TypeError(msg)
    except ModuleNotFoundError as e:
        msg = f"Couldn't find the path for {dotted_path}"
        raise TypeError(msg) from e

    path = Path(str(src.origin))
    return path.parent if path.is_file() else path
