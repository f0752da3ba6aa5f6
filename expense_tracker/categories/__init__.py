"""Category presets and registry package."""

from expense_tracker.categories.presets import CATEGORY_PRESETS, get_preset_categories
from expense_tracker.categories.registry import CategoryRegistry

__all__ = ["CATEGORY_PRESETS", "CategoryRegistry", "get_preset_categories"]
