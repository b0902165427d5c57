import sys
from pathlib import Path
from typing import Callable

import pytest
from bs4 import BeautifulSoup

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'microdata_template'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from microdata_template.core.template.dom import parse_html  # noqa: E402
from microdata_template.core.template.engine import MicrodataTemplate  # noqa: E402
from microdata_template.data import clear_caches  # noqa: E402


@pytest.fixture
def soup() -> Callable[[str], BeautifulSoup]:
    """Factory parsing markup the way the engine does."""

    def _parse(markup: str) -> BeautifulSoup:
        return parse_html(markup)

    return _parse


@pytest.fixture
def engine() -> MicrodataTemplate:
    return MicrodataTemplate()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop MICRODATA_TEMPLATE_* variables leaking in from the host environment."""
    import os

    for key in list(os.environ):
        if key.startswith("MICRODATA_TEMPLATE_"):
            monkeypatch.delenv(key, raising=False)
    clear_caches()
