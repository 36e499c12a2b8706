import textwrap
from pathlib import Path

import pytest

from converge_harness.config import HarnessConfig
from converge_harness.harness import ConvergeHarness
from converge_harness.pytest_plugin import converge_harness  # noqa: F401


@pytest.fixture
def cookbook_path(tmp_path: Path) -> Path:
    path = tmp_path / "cookbooks"
    path.mkdir()
    return path


@pytest.fixture
def write_recipe(cookbook_path: Path):
    """Write <cookbook>/recipes/<recipe>.py under the temporary cookbook path."""

    def _write(cookbook: str, recipe: str, source: str, base: Path | None = None) -> Path:
        recipes_dir = (base or cookbook_path) / cookbook / "recipes"
        recipes_dir.mkdir(parents=True, exist_ok=True)
        path = recipes_dir / f"{recipe}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def harness(cookbook_path: Path) -> ConvergeHarness:
    return ConvergeHarness(cookbook_path, config=HarnessConfig())
