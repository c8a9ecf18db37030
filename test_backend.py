"""
Unit tests for normalization, validation and the fallback policy.
No Flask app or network involved.
"""

import pytest

from app_models import (
    strip_html, SearchQuery, SearchResultItem, RecipeDetail, IngredientInfo,
    SubstituteResult, ValidationError, ConfigError, UpstreamError,
    UpstreamTimeoutError, ServerError,
)
from app_services import FallbackPolicy
from mock_data import MOCK_DETAILS, MOCK_RESULTS, find_mock_detail, mock_search_results


HTML_SAMPLES = [
    "",
    "plain text",
    "<p>A</p><p>B</p>",
    "Line one<br>Line two<br/>Line three<BR />",
    "<ol>\n<li>Boil.</li>\n<li>Serve.</li>\n</ol>",
    "a\n\n\n\n\nb",
    "<p></p><p></p><p>x</p>",
    "  <b>bold</b> and <a href='x'>link</a>  ",
    "<<p>>",
    "<>x>",
    "1 < 2 and 3 > 2",
    "\n<span></span>\n\n<span></span>\n",
]


class TestStripHtml:
    """Test HTML to text cleanup."""

    def test_paragraphs(self):
        assert strip_html("<p>A</p><p>B</p>") == "A\nB"

    def test_line_breaks(self):
        assert strip_html("Line one<br>Line two<br/>Line three<BR />") == "Line one\nLine two\nLine three"

    def test_inline_tags_removed(self):
        assert strip_html("  <b>bold</b> and <a href='x'>link</a>  ") == "bold and link"

    def test_blank_lines_capped(self):
        assert strip_html("a\n\n\n\n\nb") == "a\n\nb"

    def test_none(self):
        assert strip_html(None) == ""

    @pytest.mark.parametrize("text", HTML_SAMPLES)
    def test_idempotent(self, text):
        once = strip_html(text)
        assert strip_html(once) == once


class TestSearchQuery:
    """Test search parameter validation."""

    def test_requires_q_or_cuisine(self):
        with pytest.raises(ValidationError) as excinfo:
            SearchQuery.from_args({"diet": "vegan"})
        assert excinfo.value.status_code == 400

    def test_truncation(self):
        query = SearchQuery.from_args({"q": "a" * 400, "cuisine": "b" * 400, "diet": "c" * 400})
        assert len(query.q) == 300
        assert len(query.cuisine) == 120
        assert len(query.diet) == 120

    def test_params_skip_empty(self):
        query = SearchQuery.from_args({"cuisine": "thai"})
        assert query.to_params() == {"cuisine": "thai"}


class TestNormalizers:
    """Test Spoonacular payload normalization."""

    def test_search_item_snippet_truncated(self):
        item = SearchResultItem.from_spoonacular({
            "id": 1,
            "title": "Long",
            "instructions": "<p>" + "word " * 300 + "</p>",
        })
        assert len(item.instructions) == 601
        assert item.instructions.endswith("…")

    def test_search_item_url_precedence(self):
        item = SearchResultItem.from_spoonacular({
            "id": 1,
            "sourceUrl": "",
            "spoonacularSourceUrl": "https://spoonacular.com/x-1",
        })
        assert item.url == "https://spoonacular.com/x-1"
        assert item.title == ""

    def test_detail_numbered_steps_keep_blank_step(self):
        detail = RecipeDetail.from_spoonacular({
            "id": 2,
            "title": "Steps",
            "analyzedInstructions": [{"steps": [{"step": "Mix"}, {}]}],
        })
        assert detail.instructions == "1. Mix\n2. "

    def test_detail_empty_analyzed_uses_free_text(self):
        detail = RecipeDetail.from_spoonacular({
            "id": 2,
            "title": "Text",
            "analyzedInstructions": [{"steps": []}],
            "instructions": "Stir<br>Serve",
        })
        assert detail.instructions == "Stir\nServe"

    def test_detail_ingredient_text_fallback(self):
        detail = RecipeDetail.from_spoonacular({
            "id": 3,
            "title": "T",
            "extendedIngredients": [{"original": "2 eggs", "name": "egg"}, {"name": "salt"}, {}],
        })
        assert detail.ingredients == ["2 eggs", "salt", ""]

    def test_calories_case_insensitive(self):
        assert IngredientInfo.find_calories({"nutrients": [{"name": "CALORIES", "amount": 12}]}) == 12
        assert IngredientInfo.find_calories({"nutrients": [{"name": "Fat", "amount": 1}]}) is None
        assert IngredientInfo.find_calories(None) is None

    def test_ingredient_info_without_image(self):
        info = IngredientInfo.from_spoonacular({"id": 4, "name": "salt"})
        assert info.image == ""
        assert info.to_dict()["possibleUnits"] == []

    def test_substitutes_defaults(self):
        assert SubstituteResult.from_spoonacular({}).to_dict() == {"substitutes": [], "message": ""}


class TestErrors:
    """Test error payloads and status mapping."""

    @pytest.mark.parametrize("upstream_status,expected", [
        (402, 402), (404, 404), (429, 429), (401, 502), (500, 502), (None, 502),
    ])
    def test_upstream_status_mapping(self, upstream_status, expected):
        assert UpstreamError(upstream_status=upstream_status).status_code == expected

    def test_upstream_payload(self):
        error = UpstreamError("Upstream API error", 500, "e" * 500)
        assert error.to_dict() == {
            "error": "Upstream API error",
            "spoonacularStatus": 500,
            "detail": "e" * 200,
        }

    def test_validation_payload(self):
        assert ValidationError("Missing id parameter", "id").to_dict() == {
            "error": "Missing id parameter",
            "field": "id",
        }


class TestFallbackPolicy:
    """Test mock fallback decisions."""

    @pytest.mark.parametrize("error", [
        ConfigError(),
        UpstreamTimeoutError(),
        UpstreamError("unreachable"),
        UpstreamError(upstream_status=402),
        UpstreamError(upstream_status=429),
        UpstreamError(upstream_status=503),
        KeyError("id"),
    ])
    def test_mock_mode_falls_back(self, error):
        assert FallbackPolicy(FallbackPolicy.MOCK).should_use_mock(error)

    @pytest.mark.parametrize("error", [
        UpstreamError(upstream_status=401),
        UpstreamError(upstream_status=404),
        ServerError(),
    ])
    def test_mock_mode_surfaces(self, error):
        assert not FallbackPolicy(FallbackPolicy.MOCK).should_use_mock(error)

    def test_strict_never_falls_back(self):
        policy = FallbackPolicy("STRICT")
        assert not policy.mock_enabled
        assert not policy.should_use_mock(ConfigError())
        assert not policy.should_use_mock(UpstreamError(upstream_status=429))

    def test_default_and_unknown_modes(self):
        assert FallbackPolicy(None).mode == FallbackPolicy.MOCK
        with pytest.raises(ValueError):
            FallbackPolicy("sometimes")


class TestMockCatalog:
    """Test the static fallback data."""

    def test_lookup(self):
        assert find_mock_detail("1001") == MOCK_DETAILS[1001]
        assert find_mock_detail("9999") is None
        assert find_mock_detail("abc") is None

    def test_lookup_returns_copy(self):
        detail = find_mock_detail(1001)
        assert detail is not MOCK_DETAILS[1001]

        detail.title = "Changed"
        detail.ingredients.append("extra")
        detail.cuisines.clear()

        original = MOCK_DETAILS[1001]
        assert original.title == "Classic Chicken Adobo"
        assert "extra" not in original.ingredients
        assert original.cuisines == ["Asian", "Filipino"]

    def test_search_results_are_copies(self):
        results = mock_search_results()
        results[0].ingredients.append("extra")
        assert "extra" not in MOCK_RESULTS[0].ingredients

    def test_result_ingredients_are_bare_names(self):
        assert MOCK_RESULTS[0].ingredients == [
            "chicken thighs", "white vinegar", "soy sauce", "garlic", "bay leaves", "black peppercorns",
        ]
        for result in MOCK_RESULTS:
            assert all(name == name.lower() for name in result.ingredients)
            assert not any(name[0].isdigit() for name in result.ingredients)

    def test_read_only(self):
        with pytest.raises(TypeError):
            MOCK_DETAILS[2000] = MOCK_DETAILS[1001]

    def test_results_mirror_details(self):
        assert [r.id for r in MOCK_RESULTS] == list(MOCK_DETAILS)
        for result in MOCK_RESULTS:
            data = result.to_dict()
            assert data["title"]
            assert isinstance(data["ingredients"], list)
            assert data["country"] == ""
