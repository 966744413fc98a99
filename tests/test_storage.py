from __future__ import annotations

from pathlib import Path
import sys
import threading

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipe_store.errors import RecipeNotFoundError
from recipe_store.models import Recipe
from recipe_store.seed import load_seed_file
from recipe_store.storage import InMemoryRecipeStorage


def test_get_missing_recipe_raises_key_error():
    storage = InMemoryRecipeStorage()

    with pytest.raises(KeyError):
        storage.get_recipe("missing")


def test_update_missing_recipe_leaves_collection_unchanged():
    storage = InMemoryRecipeStorage()
    storage.add_recipe(name="Soup", tags=[], ingredients=[], instructions=[])

    with pytest.raises(RecipeNotFoundError):
        storage.update_recipe("missing", name="Stew", tags=[], ingredients=[], instructions=[])

    assert [recipe.name for recipe in storage.list_recipes()] == ["Soup"]


def test_seed_skips_known_ids():
    storage = InMemoryRecipeStorage()
    recipes = [Recipe(id="a", name="One"), Recipe(id="b", name="Two"), Recipe(id="a", name="Dup")]

    assert storage.seed(recipes) == 2
    assert storage.seed([Recipe(id="b", name="Again")]) == 0
    assert [recipe.name for recipe in storage.list_recipes()] == ["One", "Two"]


def test_earlier_reads_keep_their_values_after_update():
    storage = InMemoryRecipeStorage()
    created = storage.add_recipe(name="Soup", tags=["b"], ingredients=[], instructions=[])
    (listed,) = storage.list_recipes()
    fetched = storage.get_recipe(created.id)

    storage.update_recipe(created.id, name="Stew", tags=["c"], ingredients=[], instructions=[])

    assert listed.name == "Soup"
    assert fetched.tags == ["b"]
    assert storage.get_recipe(created.id).name == "Stew"


def test_editing_returned_recipes_does_not_change_the_store():
    storage = InMemoryRecipeStorage()
    created = storage.add_recipe(name="Soup", tags=["b"], ingredients=[], instructions=[])

    created.tags.append("unlocked")
    storage.get_recipe(created.id).name = "Changed"
    storage.find_by_tag("b")[0].ingredients.append("salt")

    stored = storage.get_recipe(created.id)
    assert stored.name == "Soup"
    assert stored.tags == ["b"]
    assert stored.ingredients == []


def test_concurrent_adds_are_not_lost():
    storage = InMemoryRecipeStorage()

    def worker():
        for _ in range(50):
            storage.add_recipe(name="Dish", tags=[], ingredients=[], instructions=[])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    recipes = list(storage.list_recipes())
    assert len(recipes) == 400
    assert len({recipe.id for recipe in recipes}) == 400


def test_load_seed_file_reads_repository_seed():
    recipes = load_seed_file(Path(__file__).resolve().parents[1] / "recipes.json")

    pasta = next(recipe for recipe in recipes if recipe.name == "Pasta")
    assert pasta.tags == ["Italian", "Quick"]
    assert pasta.published_at is not None
    assert pasta.published_at.tzinfo is not None


def test_load_seed_file_missing_returns_empty(tmp_path):
    assert load_seed_file(tmp_path / "absent.json") == []


def test_load_seed_file_assigns_missing_ids(tmp_path):
    seed = tmp_path / "recipes.json"
    seed.write_text('[{"name": "Toast", "tags": ["Breakfast"]}]', encoding="utf-8")

    (recipe,) = load_seed_file(seed)

    assert recipe.id
    assert recipe.published_at is not None


def test_load_seed_file_rejects_non_array(tmp_path):
    seed = tmp_path / "recipes.json"
    seed.write_text('{"name": "Toast"}', encoding="utf-8")

    with pytest.raises(ValueError):
        load_seed_file(seed)


def test_load_seed_file_rejects_string_lists(tmp_path):
    seed = tmp_path / "recipes.json"
    seed.write_text('[{"id": "p", "name": "Pasta", "tags": "italian"}]', encoding="utf-8")

    with pytest.raises(ValueError, match="tags"):
        load_seed_file(seed)
