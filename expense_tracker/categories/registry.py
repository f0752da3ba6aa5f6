"""
Category Registry

Maintains the user's custom categories and the currently selected subset
used for expense tracking. Presets come from categories.presets and are
never modified.
"""

from typing import Iterable, Optional

from expense_tracker.categories.presets import get_preset_categories
from expense_tracker.models.intents import Intent, MutationResult
from expense_tracker.models.profile import (
    Category,
    CategoryGroup,
    UserType,
    new_id,
)


DEFAULT_CUSTOM_DESCRIPTION = "Custom category"


class CategoryRegistry:
    """Custom categories plus the selected category set."""

    def __init__(
        self,
        selected: Optional[Iterable[Category]] = None,
        custom: Optional[Iterable[Category]] = None,
    ):
        self._selected: list[Category] = list(selected or [])
        self._custom: list[Category] = list(custom or [])

    @property
    def selected(self) -> list[Category]:
        return list(self._selected)

    @property
    def custom(self) -> list[Category]:
        return list(self._custom)

    def get_preset_categories(self, user_type: UserType) -> tuple[Category, ...]:
        return get_preset_categories(user_type)

    def available_categories(self, user_type: Optional[UserType]) -> list[Category]:
        """
        Presets for the user type overlaid by custom categories.

        De-duplicated by id; a custom category replaces a preset with the
        same id in place. Order: presets first, then new custom entries.
        """
        merged: dict[str, Category] = {}
        if user_type is not None:
            for category in get_preset_categories(user_type):
                merged[category.id] = category
        for category in self._custom:
            merged[category.id] = category
        return list(merged.values())

    def add_custom_category(
        self,
        name: str,
        description: str = "",
        group: CategoryGroup = CategoryGroup.DAILY,
    ) -> MutationResult[Category]:
        """
        Create a custom category and select it.

        Raises ValueError when the trimmed name is empty.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name cannot be empty")

        category = Category(
            id=new_id("custom"),
            name=name,
            description=(description or "").strip() or DEFAULT_CUSTOM_DESCRIPTION,
            group=group,
            is_custom=True,
        )
        self._custom.append(category)
        self._selected.append(category)
        return MutationResult(value=category, intents=[Intent.persist()])

    def set_selected_categories(self, categories: Iterable[Category]) -> MutationResult[list[Category]]:
        """Replace the selection wholesale."""
        self._selected = list(categories)
        return MutationResult(value=self.selected, intents=[Intent.persist()])

    def reconcile(self, user_type: Optional[UserType]) -> list[str]:
        """
        Drop selected categories that are no longer available.

        Returns the dropped ids (empty when nothing changed).
        """
        available_ids = {c.id for c in self.available_categories(user_type)}
        dropped = [c.id for c in self._selected if c.id not in available_ids]
        if dropped:
            self._selected = [c for c in self._selected if c.id in available_ids]
        return dropped

    def clear(self) -> None:
        self._selected.clear()
        self._custom.clear()
