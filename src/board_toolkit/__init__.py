"""Top-level package for the Board Toolkit.

Provides subpackages:
- board_toolkit.core – immutable models and wire-format serialization
- board_toolkit.distribution – script distribution engine, stores and output
- board_toolkit.gui – PySide6 distribution tab
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.1"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        from importlib.metadata import version as pkg_version, PackageNotFoundError
    except ImportError:
        return "0.0.0"
    try:
        return pkg_version("board_toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
