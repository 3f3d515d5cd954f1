"""Small filesystem helpers shared by the tests."""

from pathlib import Path


def write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def names(entries) -> list:
    return [entry.name for entry in entries]


def relative_paths(entries, base: Path) -> list:
    return [str(Path(entry.path).relative_to(base)) for entry in entries]
