# cookbooks.py
# Cookbook discovery and run-list item resolution.
#
# A cookbook is a directory under one of the configured cookbook paths;
# its recipes live in <cookbook>/recipes/<recipe>.py. The first path that
# contains a cookbook wins.
#
# stdlib only — zero external dependencies.

import re
from dataclasses import dataclass
from pathlib import Path

DEFAULT_RECIPE = "default"

_NAME = r"[A-Za-z0-9_\-][A-Za-z0-9_.\-]*"
_ITEM_RE = re.compile(rf"^(?:recipe\[(?P<wrapped>[^\]]*)\]|(?P<bare>[^\[\]]+))$")
_REF_RE = re.compile(rf"^(?P<cookbook>{_NAME})(?:::(?P<recipe>{_NAME}))?$")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ResolutionError(Exception):
    """Raised when a run-list item cannot be resolved to a recipe file."""


class CookbookPathError(ResolutionError):
    """Raised when no configured cookbook path exists on disk."""


class CookbookNotFoundError(ResolutionError):
    """Raised when no cookbook path contains the requested cookbook."""


class RecipeNotFoundError(ResolutionError):
    """Raised when a cookbook exists but lacks the requested recipe."""


class InvalidRunListItemError(ResolutionError):
    """Raised when a run-list item does not parse as a recipe reference."""


# ---------------------------------------------------------------------------
# Run-list items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecipeRef:
    """A resolved `cookbook::recipe` pair."""

    cookbook: str
    recipe: str = DEFAULT_RECIPE

    @property
    def name(self) -> str:
        return f"{self.cookbook}::{self.recipe}"

    def __str__(self) -> str:
        return self.name


def parse_run_list_item(item: str) -> RecipeRef:
    """
    Parse `name`, `name::recipe`, `recipe[name]` or `recipe[name::recipe]`.

    Raises InvalidRunListItemError for anything else, roles included.
    """
    match = _ITEM_RE.match(item.strip()) if isinstance(item, str) else None
    if not match:
        raise InvalidRunListItemError(f"Run-list item {item!r} is not a recipe reference.")

    body = (match.group("wrapped") if match.group("wrapped") is not None else match.group("bare")).strip()
    ref = _REF_RE.match(body)
    if not ref:
        raise InvalidRunListItemError(f"Run-list item {item!r} has an invalid cookbook or recipe name.")
    return RecipeRef(ref.group("cookbook"), ref.group("recipe") or DEFAULT_RECIPE)


def normalize_run_list_item(item: str) -> str:
    """
    Canonical run-list form: `recipe[cookbook]` for a default recipe,
    `recipe[cookbook::recipe]` otherwise. `base` and `base::default` agree.
    """
    ref = parse_run_list_item(item)
    if ref.recipe == DEFAULT_RECIPE:
        return f"recipe[{ref.cookbook}]"
    return f"recipe[{ref.name}]"


# ---------------------------------------------------------------------------
# CookbookLoader
# ---------------------------------------------------------------------------


class CookbookLoader:
    """Resolves recipe references against an ordered list of cookbook paths."""

    def __init__(self, cookbook_paths: list[Path] | Path | str) -> None:
        if isinstance(cookbook_paths, (str, Path)):
            cookbook_paths = [cookbook_paths]
        self._paths: list[Path] = [Path(p) for p in cookbook_paths]

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def _existing_paths(self) -> list[Path]:
        existing = [p for p in self._paths if p.is_dir()]
        if not existing:
            searched = ", ".join(str(p) for p in self._paths) or "<none>"
            raise CookbookPathError(f"No cookbook path exists (searched: {searched}).")
        return existing

    def cookbooks(self) -> list[str]:
        """Names of every cookbook visible on the path, first occurrence wins."""
        names: list[str] = []
        for base in self._existing_paths():
            for child in sorted(base.iterdir()):
                if child.is_dir() and child.name not in names and _REF_RE.match(child.name):
                    names.append(child.name)
        return names

    def cookbook_dir(self, cookbook: str) -> Path:
        for base in self._existing_paths():
            candidate = base / cookbook
            if candidate.is_dir():
                return candidate
        raise CookbookNotFoundError(f"Cookbook {cookbook!r} not found in {self._format_paths()}.")

    def recipes(self, cookbook: str) -> list[str]:
        recipes_dir = self.cookbook_dir(cookbook) / "recipes"
        if not recipes_dir.is_dir():
            return []
        return sorted(p.stem for p in recipes_dir.glob("*.py"))

    def recipe_file(self, ref: RecipeRef) -> Path:
        path = self.cookbook_dir(ref.cookbook) / "recipes" / f"{ref.recipe}.py"
        if not path.is_file():
            raise RecipeNotFoundError(f"Recipe {ref.name!r} not found (expected {path}).")
        return path

    def _format_paths(self) -> str:
        return ", ".join(str(p) for p in self._paths)
