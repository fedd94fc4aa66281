import textwrap

import pytest


@pytest.fixture
def write_entry():
    """Write a .desktop file from keyword fields; None values are omitted."""

    def _write(directory, file_name, group="Desktop Entry", **fields):
        directory.mkdir(parents=True, exist_ok=True)
        lines = [f"[{group}]"]
        lines.extend(f"{key}={value}" for key, value in fields.items() if value is not None)
        path = directory / file_name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def dedent():
    return lambda text: textwrap.dedent(text).lstrip()
