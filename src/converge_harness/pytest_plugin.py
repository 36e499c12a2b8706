# pytest_plugin.py
# pytest integration. Registered through the pytest11 entry point, so the
# fixture is available to any project that installs converge-harness.

from pathlib import Path
from typing import Any, Callable

import pytest

from converge_harness.config import HarnessConfig
from converge_harness.harness import ConvergeHarness, default_cookbook_path


@pytest.fixture
def converge_harness(request: pytest.FixtureRequest) -> Callable[..., ConvergeHarness]:
    """
    Factory for harnesses bound to the requesting test.

    Without an explicit cookbook path, the configured one is used, falling
    back to three levels above the test file.
    """

    def _make(cookbook_path: str | Path | list[str | Path] | None = None, **kwargs: Any) -> ConvergeHarness:
        config = kwargs.get("config") or HarnessConfig.from_env()
        if cookbook_path is None and not config.cookbook_path:
            cookbook_path = default_cookbook_path(request.path)
        kwargs["config"] = config
        return ConvergeHarness(cookbook_path, **kwargs)

    return _make
