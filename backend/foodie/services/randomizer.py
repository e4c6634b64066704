"""
Recipe Randomizer
Picks a varied set of recipes for a week.

The candidates are shuffled with Fisher-Yates, then walked greedily: a
recipe is taken only when neither its primary ingredient nor its secondary
ingredient has been used by a recipe already picked, so a week does not
end up with three chicken dishes. A recipe without a second ingredient
never conflicts on the secondary key.
"""

import random
from dataclasses import dataclass
from typing import Any, List, MutableSequence, Optional


@dataclass
class RecipeCandidate:
    """A recipe reduced to what the randomizer needs."""
    recipe_id: Any
    primary_key: Optional[str] = None
    secondary_key: Optional[str] = None


def fisher_yates_shuffle(items: MutableSequence, rng: Optional[random.Random] = None) -> MutableSequence:
    """Shuffle items in place and return them."""
    rng = rng or random.Random()
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def select_random_recipes(
    candidates: List[RecipeCandidate],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[RecipeCandidate]:
    """
    Pick up to count candidates with distinct primary and secondary keys.

    Candidates without a primary key (recipes with no ingredients) are
    never picked. Returns fewer than count when the pool runs out of
    compatible recipes.
    """
    if count <= 0:
        return []

    pool = fisher_yates_shuffle(list(candidates), rng)
    used_primary = set()
    used_secondary = set()
    selected = []

    for candidate in pool:
        if candidate.primary_key is None or candidate.primary_key in used_primary:
            continue
        if candidate.secondary_key is not None and candidate.secondary_key in used_secondary:
            continue

        selected.append(candidate)
        used_primary.add(candidate.primary_key)
        if candidate.secondary_key is not None:
            used_secondary.add(candidate.secondary_key)
        if len(selected) == count:
            break

    return selected
