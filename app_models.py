"""
Data models, validation and response normalization for the recipe proxy.
Maps Spoonacular's verbose JSON into the stable client-facing shape.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
import re

INGREDIENT_IMAGE_BASE = "https://spoonacular.com/cdn/ingredients_100x100/"
DETAIL_PREVIEW_CHARS = 200
SNIPPET_MAX_CHARS = 600

_BLOCK_TAGS = re.compile(r"(?:<\/?(?:br|p|li|ol|ul)\s*\/?>\s*)+", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_WHITESPACE = re.compile(r"\s+")


def strip_html(text: Optional[str]) -> str:
    """
    Turn Spoonacular's HTML summary/instructions into plain text.

    Runs of line and block tags become a single newline, every other tag is
    dropped, blank-line runs are capped at one and the result is trimmed.
    Applying it twice gives the same result as applying it once.
    """
    text = _BLOCK_TAGS.sub("\n", text or "")
    text = _ANY_TAG.sub("", text)
    text = _EXTRA_NEWLINES.sub("\n\n", text)
    return text.strip()


def _first_steps(analyzed_instructions: Any) -> List[str]:
    if not isinstance(analyzed_instructions, list) or not analyzed_instructions:
        return []
    block = analyzed_instructions[0] or {}
    return [(s or {}).get("step") or "" for s in block.get("steps") or []]


def primary_url(data: Dict[str, Any]) -> str:
    # Original site first, Spoonacular page second
    return data.get("sourceUrl") or data.get("spoonacularSourceUrl") or ""


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value else None
    except (TypeError, ValueError):
        return None


class APIError(Exception):
    """Base exception for API errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(APIError):
    """Missing or malformed request parameter."""
    def __init__(self, message: str, field: str = None):
        super().__init__(message, 400)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        return payload


class ConfigError(APIError):
    """Required configuration (the Spoonacular key) is absent."""
    def __init__(self, message: str = "Missing SPOONACULAR_KEY env var"):
        super().__init__(message, 500)


class NotFoundError(APIError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, 404)


class ServerError(APIError):
    def __init__(self, message: str = "Server error"):
        super().__init__(message, 500)


class UpstreamError(APIError):
    """
    Spoonacular answered with a non-2xx status or could not be reached.

    ``upstream_status`` is None when no response was received. Quota (402),
    rate-limit (429) and not-found (404) statuses are passed through to the
    client; everything else is reported as 502.
    """
    PASSTHROUGH_STATUSES = (402, 404, 429)

    def __init__(self, message: str = "Upstream API error", upstream_status: int = None, body: str = ""):
        if upstream_status in self.PASSTHROUGH_STATUSES:
            status_code = upstream_status
        else:
            status_code = 502
        super().__init__(message, status_code)
        self.upstream_status = upstream_status
        self.body = (body or "")[:DETAIL_PREVIEW_CHARS]

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.upstream_status is not None:
            payload["spoonacularStatus"] = self.upstream_status
        if self.body:
            payload["detail"] = self.body
        return payload


class UpstreamTimeoutError(UpstreamError):
    def __init__(self, message: str = "Upstream API timed out"):
        super().__init__(message)


def _clip(value: Any, limit: int) -> str:
    return str(value or "").strip()[:limit]


@dataclass
class SearchQuery:
    """Validated search parameters from the query string."""
    q: str = ""
    cuisine: str = ""
    diet: str = ""
    intolerances: str = ""

    @staticmethod
    def from_args(args: Dict[str, Any]) -> "SearchQuery":
        """
        Build a SearchQuery from request args.

        Raises:
            ValidationError: If neither q nor cuisine is given
        """
        query = SearchQuery(
            q=_clip(args.get("q"), 300),
            cuisine=_clip(args.get("cuisine"), 120),
            diet=_clip(args.get("diet"), 120),
            intolerances=_clip(args.get("intolerances"), 120),
        )
        if not query.q and not query.cuisine:
            raise ValidationError("Missing q or cuisine parameter", "q")
        return query

    def to_params(self) -> Dict[str, str]:
        """Optional complexSearch parameters, skipping empty ones."""
        params = {
            "query": self.q,
            "cuisine": self.cuisine,
            "diet": self.diet,
            "intolerances": self.intolerances,
        }
        return {k: v for k, v in params.items() if v}


@dataclass
class SearchResultItem:
    """One recipe card in a search response."""
    id: int
    title: str
    url: str = ""
    image: str = ""
    source: str = "Spoonacular"
    cuisine: str = ""
    country: str = ""
    ingredients: List[str] = field(default_factory=list)
    instructions: str = ""

    @staticmethod
    def snippet(item: Dict[str, Any]) -> str:
        """Short plain-text instructions for the card."""
        steps = _first_steps(item.get("analyzedInstructions"))
        text = " ".join(steps) if steps else (item.get("instructions") or "")
        text = _WHITESPACE.sub(" ", _ANY_TAG.sub("", text)).strip()
        if len(text) > SNIPPET_MAX_CHARS:
            text = text[:SNIPPET_MAX_CHARS] + "…"
        return text

    @staticmethod
    def from_spoonacular(item: Dict[str, Any]) -> "SearchResultItem":
        cuisines = item.get("cuisines") or []
        return SearchResultItem(
            id=item.get("id"),
            title=item.get("title") or "",
            url=primary_url(item),
            image=item.get("image") or "",
            source=item.get("sourceName") or "Spoonacular",
            cuisine=cuisines[0] if cuisines else "",
            ingredients=[
                (i.get("name") or "").lower()
                for i in item.get("extendedIngredients") or []
            ],
            instructions=SearchResultItem.snippet(item),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "image": self.image,
            "source": self.source,
            "cuisine": self.cuisine,
            "country": self.country,
            "ingredients": list(self.ingredients),
            "instructions": self.instructions,
        }


@dataclass
class RecipeDetail:
    """Full recipe returned by the detail endpoint."""
    id: int
    title: str
    image: str = ""
    url: str = ""
    source_name: str = ""
    ready_in_minutes: Optional[int] = None
    servings: Optional[int] = None
    cuisines: List[str] = field(default_factory=list)
    diets: List[str] = field(default_factory=list)
    summary: str = ""
    ingredients: List[str] = field(default_factory=list)
    instructions: str = ""

    @staticmethod
    def build_instructions(data: Dict[str, Any]) -> str:
        """Numbered steps when Spoonacular analyzed them, else cleaned free text."""
        steps = _first_steps(data.get("analyzedInstructions"))
        if steps:
            return "\n".join(f"{n}. {step}" for n, step in enumerate(steps, start=1))
        return strip_html(data.get("instructions"))

    @staticmethod
    def from_spoonacular(data: Dict[str, Any]) -> "RecipeDetail":
        """
        Normalize a /recipes/{id}/information payload.

        Args:
            data: Raw Spoonacular recipe information

        Returns:
            RecipeDetail with every optional field defaulted
        """
        return RecipeDetail(
            id=data.get("id"),
            title=data.get("title") or "",
            image=data.get("image") or "",
            url=primary_url(data),
            source_name=data.get("sourceName") or "",
            ready_in_minutes=_optional_int(data.get("readyInMinutes")),
            servings=_optional_int(data.get("servings")),
            cuisines=list(data.get("cuisines") or []),
            diets=list(data.get("diets") or []),
            summary=strip_html(data.get("summary")),
            ingredients=[
                i.get("original") or i.get("name") or ""
                for i in data.get("extendedIngredients") or []
            ],
            instructions=RecipeDetail.build_instructions(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "url": self.url,
            "sourceName": self.source_name,
            "readyInMinutes": self.ready_in_minutes,
            "servings": self.servings,
            "cuisines": list(self.cuisines),
            "diets": list(self.diets),
            "summary": self.summary,
            "ingredients": list(self.ingredients),
            "instructions": self.instructions,
        }


@dataclass
class IngredientSuggestion:
    id: Optional[int]
    name: str
    aisle: str = ""

    @staticmethod
    def from_spoonacular(data: Dict[str, Any]) -> "IngredientSuggestion":
        return IngredientSuggestion(
            id=data.get("id"),
            name=data.get("name") or "",
            aisle=data.get("aisle") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "aisle": self.aisle}


@dataclass
class IngredientInfo:
    """Ingredient facts for a fixed 100g amount."""
    id: int
    name: str
    aisle: str = ""
    calories: Optional[float] = None
    image: str = ""
    possible_units: List[str] = field(default_factory=list)

    @staticmethod
    def find_calories(nutrition: Dict[str, Any]) -> Optional[float]:
        for nutrient in (nutrition or {}).get("nutrients") or []:
            if (nutrient.get("name") or "").lower() == "calories":
                return nutrient.get("amount")
        return None

    @staticmethod
    def from_spoonacular(data: Dict[str, Any]) -> "IngredientInfo":
        image = data.get("image")
        return IngredientInfo(
            id=data.get("id"),
            name=data.get("name") or "",
            aisle=data.get("aisle") or "",
            calories=IngredientInfo.find_calories(data.get("nutrition")),
            image=f"{INGREDIENT_IMAGE_BASE}{image}" if image else "",
            possible_units=list(data.get("possibleUnits") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "aisle": self.aisle,
            "calories": self.calories,
            "image": self.image,
            "possibleUnits": list(self.possible_units),
        }


@dataclass
class SubstituteResult:
    substitutes: List[str] = field(default_factory=list)
    message: str = ""

    @staticmethod
    def from_spoonacular(data: Dict[str, Any]) -> "SubstituteResult":
        return SubstituteResult(
            substitutes=list(data.get("substitutes") or []),
            message=data.get("message") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"substitutes": list(self.substitutes), "message": self.message}
