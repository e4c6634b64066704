"""Tests for the recipe randomizer."""

import random

from foodie.services.randomizer import RecipeCandidate, fisher_yates_shuffle, select_random_recipes


def _candidates():
    return [
        RecipeCandidate("beef-rice", "beef mince", "rice"),
        RecipeCandidate("beef-pasta", "beef mince", "pasta"),
        RecipeCandidate("chicken-rice", "chicken thigh", "rice"),
        RecipeCandidate("chicken-potato", "chicken thigh", "potato"),
        RecipeCandidate("fish-pasta", "salmon", "pasta"),
        RecipeCandidate("omelette", "eggs"),
    ]


def test_shuffle_keeps_all_items():
    items = list(range(20))
    shuffled = fisher_yates_shuffle(list(items), random.Random(3))
    assert sorted(shuffled) == items


def test_selection_never_reuses_an_ingredient():
    for seed in range(25):
        selected = select_random_recipes(_candidates(), 4, random.Random(seed))
        primaries = [c.primary_key for c in selected]
        secondaries = [c.secondary_key for c in selected if c.secondary_key]
        assert len(primaries) == len(set(primaries))
        assert len(secondaries) == len(set(secondaries))
        assert 1 <= len(selected) <= 4


def test_single_ingredient_recipes_only_conflict_on_primary():
    candidates = [RecipeCandidate(f"r{i}", f"ingredient {i}") for i in range(5)]
    assert len(select_random_recipes(candidates, 3, random.Random(1))) == 3


def test_recipes_without_ingredients_are_skipped():
    candidates = [RecipeCandidate("empty"), RecipeCandidate("also-empty"), RecipeCandidate("toast", "bread")]
    for seed in range(10):
        selected = select_random_recipes(candidates, 4, random.Random(seed))
        assert [c.recipe_id for c in selected] == ["toast"]


def test_returns_fewer_when_pool_runs_out():
    candidates = [RecipeCandidate("a", "chicken", "rice"), RecipeCandidate("b", "chicken", "pasta")]
    assert len(select_random_recipes(candidates, 4, random.Random(0))) == 1


def test_zero_count_or_empty_pool():
    assert select_random_recipes(_candidates(), 0) == []
    assert select_random_recipes([], 4) == []
