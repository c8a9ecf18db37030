"""
Service layer for Spoonacular calls and the mock fallback policy.
Each request makes at most two sequential upstream calls.
"""

import logging
from typing import List, Dict, Any, Optional
from urllib.parse import quote
import requests
from app_models import (
    SearchQuery, SearchResultItem, RecipeDetail, IngredientSuggestion,
    IngredientInfo, SubstituteResult, APIError, ConfigError, NotFoundError,
    ServerError, UpstreamError, UpstreamTimeoutError, DETAIL_PREVIEW_CHARS,
)
from mock_data import mock_search_results, find_mock_detail

logger = logging.getLogger(__name__)


class SpoonacularService:
    """Thin wrapper around the Spoonacular REST API."""

    BASE_URL = "https://api.spoonacular.com"
    REQUEST_TIMEOUT = 10
    SEARCH_PAGE_SIZE = 12
    AUTOCOMPLETE_PAGE_SIZE = 8

    def __init__(self, api_key: Optional[str], timeout: float = REQUEST_TIMEOUT):
        self.api_key = api_key
        self.timeout = timeout

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        """
        Issue one GET against Spoonacular and decode the JSON body.

        Raises:
            ConfigError: If no API key is configured
            UpstreamTimeoutError: If the call exceeds the timeout
            UpstreamError: On a network failure or non-2xx response
        """
        if not self.api_key:
            raise ConfigError()

        url = f"{self.BASE_URL}{path}"
        try:
            response = requests.get(
                url,
                params={**params, "apiKey": self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"Spoonacular timeout after {self.timeout}s: {path}")
            raise UpstreamTimeoutError()
        except requests.exceptions.RequestException as e:
            logger.error(f"Spoonacular unreachable: {path}: {str(e)}")
            raise UpstreamError("Upstream API unreachable")

        if not response.ok:
            body = response.text or ""
            logger.error(
                f"Spoonacular error: {response.status_code} {path} "
                f"{body[:DETAIL_PREVIEW_CHARS]}"
            )
            raise UpstreamError("Upstream API error", response.status_code, body)

        try:
            return response.json()
        except ValueError:
            logger.error(f"Spoonacular returned invalid JSON: {path}")
            raise UpstreamError("Upstream API returned invalid JSON")

    def complex_search(self, query: SearchQuery, number: int = SEARCH_PAGE_SIZE) -> Dict[str, Any]:
        params = {
            **query.to_params(),
            "number": number,
            "addRecipeInformation": "true",
            "fillIngredients": "true",
        }
        return self._get("/recipes/complexSearch", params)

    def get_recipe_information(self, recipe_id: str) -> Dict[str, Any]:
        return self._get(
            f"/recipes/{quote(str(recipe_id), safe='')}/information",
            {"includeNutrition": "false"},
        )

    def autocomplete_ingredients(self, query: str, number: int = AUTOCOMPLETE_PAGE_SIZE) -> List[Dict[str, Any]]:
        return self._get(
            "/food/ingredients/autocomplete",
            {"query": query, "number": number, "metaInformation": "true"},
        )

    def search_ingredients(self, name: str) -> Dict[str, Any]:
        return self._get("/food/ingredients/search", {"query": name, "number": 1})

    def get_ingredient_information(self, ingredient_id: int, amount: int = 100, unit: str = "g") -> Dict[str, Any]:
        return self._get(
            f"/food/ingredients/{ingredient_id}/information",
            {"amount": amount, "unit": unit},
        )

    def get_substitutes(self, name: str) -> Dict[str, Any]:
        return self._get("/food/ingredients/substitutes", {"ingredientName": name})


class FallbackPolicy:
    """
    Decides whether a failed recipe lookup is answered from the mock catalog.

    ``mock`` prefers mock data over surfacing 5xx: a missing key, an
    unreachable upstream, quota/rate-limit responses (402/429), upstream 5xx
    and handler exceptions all fall back. Other upstream statuses surface.
    ``strict`` never falls back.
    """

    MOCK = "mock"
    STRICT = "strict"
    MODES = (MOCK, STRICT)
    FALLBACK_STATUSES = (402, 429)

    def __init__(self, mode: str = MOCK):
        mode = (mode or self.MOCK).strip().lower()
        if mode not in self.MODES:
            raise ValueError(f"Unknown fallback mode '{mode}', expected one of {self.MODES}")
        self.mode = mode

    @property
    def mock_enabled(self) -> bool:
        return self.mode == self.MOCK

    def should_use_mock(self, error: Exception) -> bool:
        if not self.mock_enabled:
            return False
        if isinstance(error, ConfigError):
            return True
        if isinstance(error, UpstreamError):
            status = error.upstream_status
            return status is None or status in self.FALLBACK_STATUSES or status >= 500
        if isinstance(error, APIError):
            return False
        return True


class RecipeService:
    """Search and detail lookups with mock fallback."""

    def __init__(self, spoonacular_service: SpoonacularService, policy: FallbackPolicy,
                 page_size: int = SpoonacularService.SEARCH_PAGE_SIZE):
        self.spoonacular = spoonacular_service
        self.policy = policy
        self.page_size = page_size

    def search(self, query: SearchQuery) -> List[SearchResultItem]:
        """
        Search recipes and normalize each result.

        Returns the mock catalog instead when the policy absorbs the failure.
        """
        try:
            data = self.spoonacular.complex_search(query, number=self.page_size)
            results = [SearchResultItem.from_spoonacular(item) for item in (data or {}).get("results") or []]
        except APIError as e:
            if not self.policy.should_use_mock(e):
                raise
            logger.warning(f"Serving mock search results: {e.message}")
            return mock_search_results()
        except Exception as e:
            logger.exception(f"Recipe search error: {str(e)}")
            if not self.policy.should_use_mock(e):
                raise ServerError()
            return mock_search_results()

        logger.info(f"Spoonacular search returned {len(results)} recipes")
        return results

    def get_detail(self, recipe_id: str) -> RecipeDetail:
        """
        Fetch one recipe. In mock mode no failure escapes as a raw 500 when a
        mock exists for the id.

        Raises:
            NotFoundError: Fallback applied but no mock exists for the id
            UpstreamError: Upstream failure the policy does not absorb
            ServerError: Unexpected failure with no fallback
        """
        try:
            data = self.spoonacular.get_recipe_information(recipe_id)
            return RecipeDetail.from_spoonacular(data)
        except APIError as e:
            if not self.policy.should_use_mock(e):
                raise
            logger.warning(f"Serving mock detail for {recipe_id}: {e.message}")
            mock = find_mock_detail(recipe_id)
            if mock is None:
                raise NotFoundError(f"No recipe found for id {recipe_id}")
            return mock
        except Exception as e:
            logger.exception(f"Recipe detail error for {recipe_id}: {str(e)}")
            mock = find_mock_detail(recipe_id) if self.policy.should_use_mock(e) else None
            if mock is None:
                raise ServerError()
            return mock


class IngredientService:
    """Ingredient autocomplete, info and substitute lookups."""

    def __init__(self, spoonacular_service: SpoonacularService):
        self.spoonacular = spoonacular_service

    def autocomplete(self, query: str) -> List[IngredientSuggestion]:
        query = (query or "").strip()
        if not query:
            return []
        data = self.spoonacular.autocomplete_ingredients(query)
        return [IngredientSuggestion.from_spoonacular(item) for item in data or []]

    def info(self, name: str) -> IngredientInfo:
        """
        Two-step lookup: search by name, then fetch info for the first match
        at 100g.

        Raises:
            NotFoundError: If the search step finds nothing
        """
        matches = (self.spoonacular.search_ingredients(name) or {}).get("results") or []
        if not matches:
            raise NotFoundError(f"No ingredient found for '{name}'")

        ingredient_id = (matches[0] or {}).get("id")
        if ingredient_id is None:
            raise NotFoundError(f"No ingredient found for '{name}'")

        data = self.spoonacular.get_ingredient_information(ingredient_id)
        return IngredientInfo.from_spoonacular(data or {})

    def substitutes(self, name: str) -> SubstituteResult:
        return SubstituteResult.from_spoonacular(self.spoonacular.get_substitutes(name) or {})
