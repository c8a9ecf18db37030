"""
Fixed fallback catalog served when Spoonacular is unavailable or unconfigured.
"""

from dataclasses import replace
from types import MappingProxyType
from typing import List, Optional

from app_models import RecipeDetail, SearchResultItem

MOCK_DETAILS = MappingProxyType({
    1001: RecipeDetail(
        id=1001,
        title="Classic Chicken Adobo",
        image="https://spoonacular.com/recipeImages/1001-556x370.jpg",
        url="https://example.com/recipes/chicken-adobo",
        source_name="Yehey Kitchen",
        ready_in_minutes=60,
        servings=4,
        cuisines=["Asian", "Filipino"],
        diets=["gluten free", "dairy free"],
        summary="A tangy, savory braise of chicken in vinegar, soy sauce, garlic and bay leaves.",
        ingredients=[
            "2 lbs chicken thighs",
            "1/2 cup white vinegar",
            "1/3 cup soy sauce",
            "6 cloves garlic, crushed",
            "3 bay leaves",
            "1 tsp whole black peppercorns",
        ],
        instructions="\n".join([
            "1. Combine chicken, soy sauce and garlic and marinate for 30 minutes.",
            "2. Add vinegar, bay leaves and peppercorns and bring to a boil.",
            "3. Simmer covered for 30 minutes until the chicken is tender.",
            "4. Uncover and reduce the sauce until slightly thick.",
        ]),
    ),
    1002: RecipeDetail(
        id=1002,
        title="Pancit Canton",
        image="https://spoonacular.com/recipeImages/1002-556x370.jpg",
        url="https://example.com/recipes/pancit-canton",
        source_name="Yehey Kitchen",
        ready_in_minutes=35,
        servings=4,
        cuisines=["Asian", "Filipino"],
        diets=["dairy free"],
        summary="Stir-fried egg noodles with pork, shrimp and crisp vegetables.",
        ingredients=[
            "8 oz pancit canton noodles",
            "1/2 lb pork belly, sliced",
            "1/2 lb shrimp, peeled",
            "1 carrot, julienned",
            "2 cups cabbage, shredded",
            "3 tbsp soy sauce",
            "2 cups chicken broth",
        ],
        instructions="\n".join([
            "1. Brown the pork, then add the shrimp and cook until pink.",
            "2. Add the vegetables and stir-fry for 2 minutes.",
            "3. Pour in the broth and soy sauce and bring to a simmer.",
            "4. Add the noodles and toss until the liquid is absorbed.",
        ]),
    ),
    1003: RecipeDetail(
        id=1003,
        title="Vegetable Lumpia",
        image="https://spoonacular.com/recipeImages/1003-556x370.jpg",
        url="https://example.com/recipes/vegetable-lumpia",
        source_name="Yehey Kitchen",
        ready_in_minutes=45,
        servings=6,
        cuisines=["Asian", "Filipino"],
        diets=["vegetarian", "dairy free"],
        summary="Crispy spring rolls filled with sautéed vegetables, served with sweet chili sauce.",
        ingredients=[
            "20 lumpia wrappers",
            "2 carrots, julienned",
            "1 cup bean sprouts",
            "1 cup cabbage, shredded",
            "2 cloves garlic, minced",
            "1 tbsp soy sauce",
            "oil for frying",
        ],
        instructions="\n".join([
            "1. Sauté garlic and vegetables with soy sauce until just tender.",
            "2. Cool the filling, then roll it tightly in the wrappers.",
            "3. Fry the rolls until golden and drain on paper towels.",
        ]),
    ),
})


MOCK_INGREDIENT_NAMES = MappingProxyType({
    1001: ("chicken thighs", "white vinegar", "soy sauce", "garlic", "bay leaves", "black peppercorns"),
    1002: ("pancit canton noodles", "pork belly", "shrimp", "carrot", "cabbage", "soy sauce", "chicken broth"),
    1003: ("lumpia wrappers", "carrots", "bean sprouts", "cabbage", "garlic", "soy sauce", "oil"),
})


def _as_result(detail: RecipeDetail) -> SearchResultItem:
    return SearchResultItem(
        id=detail.id,
        title=detail.title,
        url=detail.url,
        image=detail.image,
        source=detail.source_name,
        cuisine=detail.cuisines[0] if detail.cuisines else "",
        ingredients=list(MOCK_INGREDIENT_NAMES[detail.id]),
        instructions=detail.instructions.replace("\n", " "),
    )


MOCK_RESULTS = tuple(_as_result(detail) for detail in MOCK_DETAILS.values())


def mock_search_results() -> List[SearchResultItem]:
    """Fresh copies of the mock search results."""
    return [replace(result, ingredients=list(result.ingredients)) for result in MOCK_RESULTS]


def find_mock_detail(recipe_id) -> Optional[RecipeDetail]:
    """Return a copy of the mock entry for a numeric id, or None."""
    try:
        detail = MOCK_DETAILS.get(int(recipe_id))
    except (TypeError, ValueError):
        return None
    if detail is None:
        return None
    return replace(
        detail,
        cuisines=list(detail.cuisines),
        diets=list(detail.diets),
        ingredients=list(detail.ingredients),
    )
