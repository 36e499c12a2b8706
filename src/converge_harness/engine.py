# engine.py
# Minimal declarative-model engine.
#
# Control flow:
#   run-list → RunContext.load_recipe (per item, depth-first through
#   include_recipe) → ordered resource collection → Runner.converge
#   → ActionExecutor.run_action per resource
#
# The engine never performs an action itself. Whatever executor the Runner
# is given decides what an action means; the harness hands it a recorder.

import inspect
import runpy
from typing import Any, Callable, Protocol

from pydantic import ValidationError
from rich.console import Console

from converge_harness import display
from converge_harness.cookbooks import CookbookLoader, RecipeRef, parse_run_list_item
from converge_harness.models import METADATA_FIELDS, RESOURCES, Node, Resource

# Provenance keywords a recipe may not pass to a resource.
RESERVED_KEYWORDS = METADATA_FIELDS - {"action"}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class InvalidResourceError(Exception):
    """Raised when a recipe declares a resource with bad attributes or action."""


class UnknownResourceTypeError(InvalidResourceError):
    """Raised when a declaration names a resource type with no model."""


# ---------------------------------------------------------------------------
# Action dispatch
# ---------------------------------------------------------------------------


class ActionExecutor(Protocol):
    """Extension point the Runner dispatches every resource action through."""

    def run_action(self, resource: Resource, action: str) -> None: ...


# ---------------------------------------------------------------------------
# RunContext
# ---------------------------------------------------------------------------


class RunContext:
    """
    Ordered resource collection built by evaluating recipes for one pass.

    Each recipe is evaluated at most once per context, whether it appears
    in the run-list twice or is pulled in again through include_recipe.
    """

    def __init__(self, node: Node, loader: CookbookLoader, out: Console | None = None) -> None:
        self.node = node
        self.loader = loader
        self.resources: list[Resource] = []
        self.loaded_recipes: list[str] = []
        self._recipe_stack: list[RecipeRef] = []
        self._out = out

    # ------------------------------------------------------------------
    # Recipe evaluation
    # ------------------------------------------------------------------

    def load_recipe(self, item: str) -> bool:
        """
        Evaluate the recipe named by `item` unless it was already loaded.

        Returns True when the recipe was evaluated by this call.
        Resolution errors propagate unchanged. A recipe that assigns an
        invalid value to a declared resource raises InvalidResourceError.
        """
        ref = parse_run_list_item(item)
        if ref.name in self.loaded_recipes:
            return False

        path = self.loader.recipe_file(ref)
        self.loaded_recipes.append(ref.name)
        display.recipe_loaded(ref.name, path, out=self._out)

        self._recipe_stack.append(ref)
        try:
            runpy.run_path(str(path), init_globals=self._namespace(ref), run_name=f"recipe:{ref.name}")
        except ValidationError as exc:
            raise InvalidResourceError(f"Invalid assignment in recipe {ref.name}: {exc}") from exc
        finally:
            self._recipe_stack.pop()
        return True

    def _namespace(self, ref: RecipeRef) -> dict[str, Any]:
        namespace: dict[str, Any] = {
            "node": self.node,
            "cookbook_name": ref.cookbook,
            "recipe_name": ref.recipe,
            "include_recipe": self.load_recipe,
        }
        for resource_type in RESOURCES:
            namespace[resource_type] = self._dsl_method(resource_type)
        return namespace

    def _dsl_method(self, resource_type: str) -> Callable[..., Resource]:
        def declare(name: str, /, **attributes: Any) -> Resource:
            frame = inspect.currentframe()
            caller = frame.f_back if frame else None
            defined_at = f"{caller.f_code.co_filename}:{caller.f_lineno}" if caller else None
            return self._add(resource_type, name, attributes, defined_at)

        declare.__name__ = resource_type
        return declare

    # ------------------------------------------------------------------
    # Resource collection
    # ------------------------------------------------------------------

    def declare(self, resource_type: str, name: str, /, **attributes: Any) -> Resource:
        """Validate and append one resource to the collection."""
        return self._add(resource_type, name, attributes, defined_at=None)

    def _add(self, resource_type: str, name: str, attributes: dict[str, Any], defined_at: str | None) -> Resource:
        cls = RESOURCES.get(resource_type)
        if cls is None:
            raise UnknownResourceTypeError(f"No resource type named {resource_type!r}.")

        ref = self._recipe_stack[-1] if self._recipe_stack else None
        where = f" in recipe {ref.name}" if ref else ""

        reserved = sorted(RESERVED_KEYWORDS & attributes.keys())
        if reserved:
            raise InvalidResourceError(
                f"Invalid {resource_type}[{name}]{where}: {', '.join(reserved)} cannot be set by a recipe."
            )

        try:
            resource = cls(
                name=name,
                cookbook_name=ref.cookbook if ref else None,
                recipe_name=ref.recipe if ref else None,
                defined_at=defined_at,
                **attributes,
            )
        except ValidationError as exc:
            raise InvalidResourceError(f"Invalid {resource_type}[{name}]{where}: {exc}") from exc

        self.resources.append(resource)
        return resource


def expand_run_list(
    node: Node,
    run_list: list[str],
    loader: CookbookLoader,
    out: Console | None = None,
) -> RunContext:
    """
    Expand `run_list` into an ordered RunContext.

    Every item is parsed before any recipe runs, so a malformed item fails
    the whole expansion up front.
    """
    for item in run_list:
        parse_run_list_item(item)

    run_context = RunContext(node, loader, out=out)
    for item in run_list:
        run_context.load_recipe(item)
    return run_context


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class Runner:
    """Drives every resource in a RunContext through an ActionExecutor, in order."""

    def __init__(self, run_context: RunContext, executor: ActionExecutor) -> None:
        self.run_context = run_context
        self.executor = executor

    def converge(self) -> None:
        for resource in self.run_context.resources:
            self.executor.run_action(resource, resource.action)
