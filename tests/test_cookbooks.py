import pytest

from converge_harness.cookbooks import (
    CookbookLoader,
    CookbookNotFoundError,
    CookbookPathError,
    InvalidRunListItemError,
    RecipeNotFoundError,
    RecipeRef,
    normalize_run_list_item,
    parse_run_list_item,
)

# ---------------------------------------------------------------------------
# Run-list item parsing
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "item, expected",
    [
        ("base", RecipeRef("base", "default")),
        ("base::server", RecipeRef("base", "server")),
        ("recipe[base]", RecipeRef("base", "default")),
        ("recipe[base::server]", RecipeRef("base", "server")),
        ("  web-app_2  ", RecipeRef("web-app_2", "default")),
    ],
)
def test_parse_run_list_item(item, expected):
    assert parse_run_list_item(item) == expected


@pytest.mark.parametrize(
    "item", ["", "   ", "role[web]", "base:server", "../etc", "..", ".hidden", "base::.draft", "recipe[]", "a::b::c"]
)
def test_parse_run_list_item_rejects_invalid(item):
    with pytest.raises(InvalidRunListItemError):
        parse_run_list_item(item)


def test_normalize_run_list_item():
    assert normalize_run_list_item("base") == "recipe[base]"
    assert normalize_run_list_item("recipe[base]") == "recipe[base]"
    assert normalize_run_list_item("base::server") == "recipe[base::server]"
    assert normalize_run_list_item("base::default") == "recipe[base]"
    assert normalize_run_list_item("recipe[base::default]") == "recipe[base]"


def test_recipe_ref_name():
    assert str(RecipeRef("base")) == "base::default"


# ---------------------------------------------------------------------------
# CookbookLoader
# ---------------------------------------------------------------------------


def test_loader_lists_cookbooks_and_recipes(cookbook_path, write_recipe):
    write_recipe("web", "default", "")
    write_recipe("web", "nginx", "")
    write_recipe("base", "default", "")
    (cookbook_path / "web" / "recipes" / "notes.txt").write_text("ignored")

    loader = CookbookLoader(cookbook_path)

    assert loader.cookbooks() == ["base", "web"]
    assert loader.recipes("web") == ["default", "nginx"]


def test_loader_cookbook_without_recipes_dir(cookbook_path):
    (cookbook_path / "empty").mkdir()

    loader = CookbookLoader(cookbook_path)

    assert loader.recipes("empty") == []
    with pytest.raises(RecipeNotFoundError):
        loader.recipe_file(RecipeRef("empty"))


def test_loader_first_path_wins(tmp_path, write_recipe):
    first = tmp_path / "site-cookbooks"
    second = tmp_path / "cookbooks"
    write_recipe("base", "default", "# site\n", base=first)
    write_recipe("base", "default", "# upstream\n", base=second)
    write_recipe("extra", "default", "", base=second)

    loader = CookbookLoader([first, second])

    assert loader.recipe_file(RecipeRef("base")) == first / "base" / "recipes" / "default.py"
    assert loader.recipe_file(RecipeRef("extra")) == second / "extra" / "recipes" / "default.py"
    assert loader.cookbooks() == ["base", "extra"]


def test_loader_skips_missing_paths_when_one_exists(tmp_path, cookbook_path, write_recipe):
    write_recipe("base", "default", "")

    loader = CookbookLoader([tmp_path / "missing", cookbook_path])

    assert loader.cookbook_dir("base") == cookbook_path / "base"


def test_loader_errors(tmp_path, cookbook_path, write_recipe):
    write_recipe("base", "default", "")
    loader = CookbookLoader(str(cookbook_path))

    with pytest.raises(CookbookNotFoundError, match="ghost"):
        loader.cookbook_dir("ghost")
    with pytest.raises(RecipeNotFoundError, match="base::ghost"):
        loader.recipe_file(RecipeRef("base", "ghost"))
    with pytest.raises(CookbookPathError):
        CookbookLoader(tmp_path / "nowhere").cookbooks()
