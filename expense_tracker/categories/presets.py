"""
Preset Categories

Fixed, ordered category lists offered to each profile archetype during
setup. Preset ids are prefixed with the archetype so they never collide
with user-created 'custom-...' ids.
"""

from types import MappingProxyType

from expense_tracker.models.profile import Category, CategoryGroup, UserType


def _preset(user_type: UserType, slug: str, name: str, description: str, group: CategoryGroup) -> Category:
    return Category(
        id=f"{user_type.value}-{slug}",
        name=name,
        description=description,
        group=group,
    )


_DAILY = CategoryGroup.DAILY
_MONTHLY = CategoryGroup.MONTHLY

CATEGORY_PRESETS = MappingProxyType({
    UserType.STUDENT: (
        _preset(UserType.STUDENT, "food", "Food", "Canteen, snacks and groceries", _DAILY),
        _preset(UserType.STUDENT, "transport", "Transport", "Bus, metro and taxi fares", _DAILY),
        _preset(UserType.STUDENT, "coffee", "Coffee & treats", "Coffee, sweets and small treats", _DAILY),
        _preset(UserType.STUDENT, "books", "Books & supplies", "Textbooks, stationery and printing", _MONTHLY),
        _preset(UserType.STUDENT, "phone", "Mobile & internet", "Phone plan and data packages", _MONTHLY),
        _preset(UserType.STUDENT, "rent", "Dormitory / rent", "Accommodation costs", _MONTHLY),
        _preset(UserType.STUDENT, "fun", "Entertainment", "Cinema, events and subscriptions", _MONTHLY),
    ),
    UserType.WORKER: (
        _preset(UserType.WORKER, "food", "Food", "Lunches, groceries and eating out", _DAILY),
        _preset(UserType.WORKER, "transport", "Transport", "Commute, fuel and parking", _DAILY),
        _preset(UserType.WORKER, "coffee", "Coffee", "Coffee and snacks during the day", _DAILY),
        _preset(UserType.WORKER, "rent", "Rent / mortgage", "Housing payments", _MONTHLY),
        _preset(UserType.WORKER, "utilities", "Utilities", "Electricity, water, gas and internet", _MONTHLY),
        _preset(UserType.WORKER, "health", "Health", "Pharmacy, doctor and gym", _MONTHLY),
        _preset(UserType.WORKER, "savings", "Savings", "Money set aside each month", _MONTHLY),
        _preset(UserType.WORKER, "fun", "Entertainment", "Going out and subscriptions", _MONTHLY),
    ),
    UserType.PARENT: (
        _preset(UserType.PARENT, "groceries", "Groceries", "Household food shopping", _DAILY),
        _preset(UserType.PARENT, "transport", "Transport", "Fuel, school runs and fares", _DAILY),
        _preset(UserType.PARENT, "kids", "Kids' expenses", "Pocket money, snacks and toys", _DAILY),
        _preset(UserType.PARENT, "school", "School & education", "Tuition, courses and supplies", _MONTHLY),
        _preset(UserType.PARENT, "utilities", "Utilities", "Electricity, water, gas and internet", _MONTHLY),
        _preset(UserType.PARENT, "rent", "Rent / mortgage", "Housing payments", _MONTHLY),
        _preset(UserType.PARENT, "health", "Health", "Doctor visits and medicine", _MONTHLY),
        _preset(UserType.PARENT, "clothing", "Clothing", "Clothes and shoes for the family", _MONTHLY),
    ),
})


def get_preset_categories(user_type: UserType) -> tuple[Category, ...]:
    """Return the fixed, ordered presets for an archetype."""
    return CATEGORY_PRESETS[UserType(user_type)]
