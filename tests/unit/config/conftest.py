from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_toml() -> Callable[[Path, str], Path]:
    def _write(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(text)
        return path

    return _write
