import logging

logger = logging.getLogger("dishflow.categories")

CATEGORIES = (
    "dairy",
    "produce",
    "proteins",
    "bakery",
    "pantry",
    "spices",
    "condiments",
    "beverages",
    "snacks",
    "frozen",
    "household",
    "other",
)

# Common user-entered or AI-returned labels -> canonical category
CATEGORY_ALIASES = {
    # Dry goods
    "grains": "pantry", "grain": "pantry", "canned": "pantry", "canned goods": "pantry",
    "pasta": "pantry", "rice": "pantry", "cereal": "pantry", "noodles": "pantry",
    "beans": "pantry", "lentils": "pantry", "legumes": "pantry",
    # Baking
    "baking": "bakery", "baking supplies": "bakery", "flour": "bakery", "sugar": "bakery",
    "bread": "bakery", "baked goods": "bakery",
    # Proteins
    "meat": "proteins", "meats": "proteins", "seafood": "proteins", "fish": "proteins",
    "poultry": "proteins", "chicken": "proteins", "beef": "proteins", "pork": "proteins",
    "tofu": "proteins", "protein": "proteins", "deli": "proteins",
    "eggs": "dairy", "egg": "dairy",
    # Produce
    "vegetables": "produce", "vegetable": "produce", "veg": "produce", "veggies": "produce",
    "fruits": "produce", "fruit": "produce", "herbs": "produce", "greens": "produce",
    # Dairy
    "milk": "dairy", "cheese": "dairy", "yogurt": "dairy", "butter": "dairy", "cream": "dairy",
    # Spices
    "spice": "spices", "seasoning": "spices", "seasonings": "spices", "salt": "spices", "pepper": "spices",
    # Condiments
    "sauce": "condiments", "sauces": "condiments", "oil": "condiments", "oils": "condiments",
    "dressing": "condiments", "condiment": "condiments", "vinegar": "condiments",
    # Beverages
    "drink": "beverages", "drinks": "beverages", "beverage": "beverages", "juice": "beverages",
    "coffee": "beverages", "tea": "beverages",
    # Snacks
    "snack": "snacks", "chips": "snacks", "nuts": "snacks", "candy": "snacks",
    # Frozen
    "ice cream": "frozen", "frozen food": "frozen", "frozen foods": "frozen",
    # Household
    "cleaning": "household", "toiletries": "household", "paper products": "household",
    # Catch-alls
    "misc": "other", "miscellaneous": "other", "general": "other", "uncategorized": "other",
}


def normalize_category(category: str | None) -> str:
    """Map a free-form category onto the canonical list. Never fails: unknown -> "other"."""
    if not category:
        return "other"

    key = category.strip().lower()
    if key in CATEGORIES:
        return key
    if key in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[key]

    logger.warning(f"Unknown category '{category}' normalized to 'other'")
    return "other"
