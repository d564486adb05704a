"""Array delta operations for recipe updates.

All functions are pure: they take the stored list and return a new list,
leaving the input untouched.
"""

from typing import Iterable, Optional

from ..errors import ValidationError

# full-replacement field -> (add field, remove field)
RECIPE_DELTA_FIELDS = {
    "tags": ("add_tags", "remove_tags"),
    "categories": ("add_categories", "remove_categories"),
    "ingredients": ("add_ingredients", "remove_ingredient_ids"),
    "steps": ("add_steps", "remove_step_indexes"),
}

_WIRE_NAMES = {
    "tags": "tags",
    "categories": "categories",
    "ingredients": "ingredients",
    "steps": "steps",
    "add_tags": "addTags",
    "remove_tags": "removeTags",
    "add_categories": "addCategories",
    "remove_categories": "removeCategories",
    "add_ingredients": "addIngredients",
    "remove_ingredient_ids": "removeIngredientIds",
    "add_steps": "addSteps",
    "remove_step_indexes": "removeStepIndexes",
}


def check_delta_conflicts(provided: Iterable[str]) -> None:
    """Reject a request that both replaces a field and adds/removes on it."""
    provided = set(provided)
    for field, (add_field, remove_field) in RECIPE_DELTA_FIELDS.items():
        if field not in provided:
            continue
        clashing = [f for f in (add_field, remove_field) if f in provided]
        if clashing:
            names = " or ".join(_WIRE_NAMES[f] for f in clashing)
            raise ValidationError(
                f"Conflicting update: cannot set '{_WIRE_NAMES[field]}' together with "
                f"{names} in the same request. Send either the full list or the changes."
            )


def apply_string_delta(
    current: Optional[list[str]],
    add: Optional[list[str]] = None,
    remove: Optional[list[str]] = None,
) -> list[str]:
    """Remove first, then append values not already present."""
    result = list(current or [])
    if remove:
        drop = set(remove)
        result = [v for v in result if v not in drop]
    for value in add or []:
        if value not in result:
            result.append(value)
    return result


def apply_ingredient_delta(
    current: Optional[list[dict]],
    add: Optional[list[dict]] = None,
    remove_ids: Optional[list[str]] = None,
) -> list[dict]:
    """Remove lines by ingredient id, then upsert ``add`` by ingredient id.

    An upserted line replaces the existing line in place; new ids are appended.
    """
    result = [dict(line) for line in current or []]
    if remove_ids:
        drop = set(remove_ids)
        result = [line for line in result if line.get("ingredient_id") not in drop]
    for line in add or []:
        for idx, existing in enumerate(result):
            if existing.get("ingredient_id") == line.get("ingredient_id"):
                result[idx] = dict(line)
                break
        else:
            result.append(dict(line))
    return result


def apply_step_delta(
    current: Optional[list[dict]],
    add: Optional[list[dict]] = None,
    remove_indexes: Optional[list[int]] = None,
) -> list[dict]:
    """Remove steps by index, then append ``add``.

    Indexes refer to the list as stored before this call. They are applied
    from highest to lowest so earlier removals do not shift later ones.
    Out-of-range indexes are ignored.
    """
    result = [dict(step) for step in current or []]
    for idx in sorted(set(remove_indexes or []), reverse=True):
        if 0 <= idx < len(result):
            del result[idx]
    result.extend(dict(step) for step in add or [])
    return result
