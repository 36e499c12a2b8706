# harness.py
# Dry-run convergence harness
#
# The harness owns the node, a cookbook loader and one recording executor.
# Recipes are expanded by the engine exactly as they would be for a real
# run; only the action dispatch is swapped for a recorder, so nothing on
# the host is ever changed.
#
# Control flow:
#   converge(names) → store reset → run-list expansion
#   → Runner dispatch through RecordingExecutor → RecordingStore
#   → find / typed lookups from test assertions
#
# All terminal output is delegated to display.py — no formatting here.

import inspect
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from rich.console import Console

from converge_harness import display
from converge_harness.config import HarnessConfig
from converge_harness.cookbooks import CookbookLoader, CookbookPathError, ResolutionError, normalize_run_list_item
from converge_harness.engine import InvalidResourceError, Runner, expand_run_list
from converge_harness.environment import build_node
from converge_harness.models import Resource, ResourceDeclaration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def default_cookbook_path(test_file: str | Path) -> Path:
    """
    Infer the cookbooks directory from a test file's location.

    Tests are expected at <cookbooks>/<cookbook>/<tests>/<file>.py, so the
    cookbooks directory sits three levels above the file itself.
    """
    parents = Path(test_file).resolve().parents
    if len(parents) < 3:
        raise CookbookPathError(f"Cannot infer a cookbook path from {test_file}: path is too shallow.")
    return parents[2]


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class RecordingStore:
    """Ordered record of the resource actions intercepted during the latest pass."""

    def __init__(self) -> None:
        self._declarations: list[ResourceDeclaration] = []

    def reset(self) -> None:
        self._declarations.clear()

    def append(self, declaration: ResourceDeclaration) -> None:
        self._declarations.append(declaration)

    def all(self) -> tuple[ResourceDeclaration, ...]:
        return tuple(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)

    def __iter__(self) -> Iterator[ResourceDeclaration]:
        return iter(self.all())


class RecordingExecutor:
    """
    Action executor that records instead of performing.

    Bound to one RecordingStore for its whole life. The harness builds a
    single instance and hands that same object to every Runner, so there
    is never more than one layer between the engine and the store.
    """

    def __init__(self, store: RecordingStore, out: Console | None = None) -> None:
        self.store = store
        self.out = out

    def run_action(self, resource: Resource, action: str) -> None:
        display.resource_intercepted(resource, action, out=self.out)
        self.store.append(ResourceDeclaration.from_resource(resource, action))


# ---------------------------------------------------------------------------
# ConvergeHarness
# ---------------------------------------------------------------------------


class ConvergeHarness:
    """
    Entry point for dry-run convergence in tests.

    Example:
        harness = ConvergeHarness("cookbooks")
        harness.converge("base")
        assert harness.directory("/var/app").action == "create"
        assert harness.file("/var/app") is None

    The cookbook path is, in order: the `cookbook_path` argument, the
    CONVERGE_HARNESS_COOKBOOK_PATH setting, or three levels above the file
    that constructs the harness.

    Each harness traces to its own stderr console, so verbose and quiet
    harnesses can coexist in one process.
    """

    def __init__(
        self,
        cookbook_path: str | Path | list[str | Path] | None = None,
        *,
        node_name: str | None = None,
        attributes: dict[str, Any] | None = None,
        config: HarnessConfig | None = None,
    ) -> None:
        self._config = config or HarnessConfig.from_env()
        self._console = display.trace_console(self._config.verbose)

        if cookbook_path is None:
            if self._config.cookbook_path:
                cookbook_path = list(self._config.cookbook_path)
            else:
                frame = inspect.currentframe()
                caller = frame.f_back if frame else None
                if caller is None:
                    raise CookbookPathError("No cookbook path given and the caller's file cannot be determined.")
                cookbook_path = default_cookbook_path(caller.f_code.co_filename)

        self._loader = CookbookLoader(cookbook_path)
        self._store = RecordingStore()
        self._executor = RecordingExecutor(self._store, out=self._console)
        self.node = build_node(node_name or self._config.node_name, attributes)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def cookbook_paths(self) -> list[Path]:
        return self._loader.paths

    @property
    def resources(self) -> tuple[ResourceDeclaration, ...]:
        """Declarations recorded by the most recent converge, in execution order."""
        return self._store.all()

    # ------------------------------------------------------------------
    # Convergence
    # ------------------------------------------------------------------

    def converge(self, *recipe_names: str) -> None:
        """
        Run one dry convergence pass over `recipe_names`.

        Only the named recipes are expanded; the node's run-list keeps every
        name converged so far. With no names, the node's whole run-list is
        converged. Resolution and resource errors propagate with the store
        left empty and the run-list untouched.
        """
        self._store.reset()

        try:
            run_list = [normalize_run_list_item(name) for name in recipe_names] or list(self.node.run_list)
            display.converge_start(run_list, out=self._console)
            run_context = expand_run_list(self.node, run_list, self._loader, out=self._console)
        except (ResolutionError, InvalidResourceError) as exc:
            display.converge_failed(str(exc), out=self._console)
            raise

        for item in run_list:
            self.node.add_to_run_list(item)

        Runner(run_context, self._executor).converge()
        display.converge_complete(len(self._store), out=self._console)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(self, resource_type: str, identifier: str) -> ResourceDeclaration | None:
        """
        First declaration of `resource_type` named `identifier`, or None.

        When a resource is declared more than once in a pass, every
        declaration is recorded and the earliest one is returned here; use
        find_all to see the rest.
        """
        for declaration in self._store:
            if declaration.resource_type == resource_type and declaration.identifier == identifier:
                return declaration
        return None

    def find_all(self, resource_type: str, identifier: str) -> list[ResourceDeclaration]:
        return [
            declaration
            for declaration in self._store
            if declaration.resource_type == resource_type and declaration.identifier == identifier
        ]

    def file(self, path: str) -> ResourceDeclaration | None:
        return self.find("file", path)

    def directory(self, path: str) -> ResourceDeclaration | None:
        return self.find("directory", path)

    def package(self, name: str) -> ResourceDeclaration | None:
        return self.find("package", name)

    def service(self, name: str) -> ResourceDeclaration | None:
        return self.find("service", name)

    def execute(self, command: str) -> ResourceDeclaration | None:
        return self.find("execute", command)
