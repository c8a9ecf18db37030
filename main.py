"""Flask app entrypoint for the recipe proxy.

Wires up configuration, CORS, logging and the recipe/ingredient endpoints
that forward to Spoonacular and fall back to mock data when it is
unavailable.
"""

import os
import logging
from datetime import datetime
from flask import Flask, request, jsonify
from flask_cors import CORS
from dotenv import load_dotenv
from app_models import APIError, ValidationError, ServerError, SearchQuery
from app_services import SpoonacularService, FallbackPolicy, RecipeService, IngredientService

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

CACHE_CONTROL = "s-maxage=600, stale-while-revalidate=3600"

# CORS configuration - read-only API
cors_config = {
    "origins": "*",
    "methods": ["GET", "OPTIONS"],
    "allow_headers": ["Content-Type"],
    "max_age": 3600,
}
CORS(app, resources={r"/api/*": cors_config, r"/recipe*": cors_config})

# Initialize services
SPOONACULAR_KEY = os.getenv("SPOONACULAR_KEY") or os.getenv("SPOONACULAR_API_KEY")
RECIPES_FALLBACK = os.getenv("RECIPES_FALLBACK", FallbackPolicy.MOCK)
RECIPES_PAGE_SIZE = int(os.getenv("RECIPES_PAGE_SIZE", SpoonacularService.SEARCH_PAGE_SIZE))
SPOONACULAR_TIMEOUT = float(os.getenv("SPOONACULAR_TIMEOUT", SpoonacularService.REQUEST_TIMEOUT))

if not SPOONACULAR_KEY:
    logger.warning("Missing SPOONACULAR_KEY - recipe lookups will use the fallback policy")

spoonacular_service = SpoonacularService(SPOONACULAR_KEY, timeout=SPOONACULAR_TIMEOUT)
fallback_policy = FallbackPolicy(RECIPES_FALLBACK)
recipe_service = RecipeService(spoonacular_service, fallback_policy, page_size=RECIPES_PAGE_SIZE)
ingredient_service = IngredientService(spoonacular_service)

start_time = datetime.now()


def cached(response):
    response.headers["Cache-Control"] = CACHE_CONTROL
    return response


def required_arg(name):
    value = (request.args.get(name) or "").strip()
    if not value:
        raise ValidationError(f"Missing {name} parameter", name)
    return value


# --- RECIPE ENDPOINTS ---
@app.route("/recipes", methods=["GET"])
@app.route("/api/recipes", methods=["GET"])
def get_recipes():
    """
    Recipe search, or an ingredient lookup selected by ``mode``.

    ?q=&cuisine=&diet=&intolerances=   -> {"results": [...]}
    ?mode=autocomplete&query=          -> [{"id", "name", "aisle"}]
    ?mode=info&name=                   -> ingredient info
    ?mode=subs&name=                   -> {"substitutes", "message"}
    """
    mode = (request.args.get("mode") or "").strip().lower()
    try:
        if mode == "autocomplete":
            suggestions = ingredient_service.autocomplete(request.args.get("query"))
            return jsonify([s.to_dict() for s in suggestions]), 200

        if mode == "info":
            info = ingredient_service.info(required_arg("name"))
            return jsonify(info.to_dict()), 200

        if mode == "subs":
            result = ingredient_service.substitutes(required_arg("name"))
            return jsonify(result.to_dict()), 200

        if mode:
            raise ValidationError(f"Unknown mode '{mode}'", "mode")

        query = SearchQuery.from_args(request.args)
        logger.info(f"Recipe search - q: {query.q!r}, cuisine: {query.cuisine!r}")
        results = recipe_service.search(query)
        return cached(jsonify({"results": [r.to_dict() for r in results]})), 200

    except APIError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in /recipes: {str(e)}")
        raise ServerError()


@app.route("/recipe", methods=["GET"])
@app.route("/api/recipe", methods=["GET"])
def get_recipe():
    """Detailed info for a single recipe id."""
    recipe_id = required_arg("id")
    detail = recipe_service.get_detail(recipe_id)
    return cached(jsonify(detail.to_dict())), 200


# --- UTILITY ENDPOINTS ---
@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint for deployment monitoring."""
    uptime_seconds = (datetime.now() - start_time).total_seconds()
    return jsonify({
        "status": "ok",
        "uptime_seconds": int(uptime_seconds),
        "timestamp": datetime.now().isoformat(),
        "spoonacular": "configured" if spoonacular_service.api_key else "NOT SET",
        "fallback": fallback_policy.mode,
    }), 200


@app.errorhandler(APIError)
def handle_api_error(e):
    if e.status_code >= 500:
        logger.error(f"{type(e).__name__}: {e.message}")
    else:
        logger.warning(f"{type(e).__name__}: {e.message}")
    return jsonify(e.to_dict()), e.status_code


@app.errorhandler(404)
def handle_not_found(e):
    """Handle 404 errors."""
    return jsonify({"error": "Endpoint not found"}), 404


@app.errorhandler(405)
def handle_method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(500)
def handle_server_error(e):
    """Handle 500 errors."""
    logger.error(f"Server error: {str(e)}")
    return jsonify({"error": "Server error"}), 500


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5001))
    debug = os.getenv("FLASK_ENV", "production") == "development"

    logger.info(f"Starting Flask app on port {port} (debug={debug})")
    logger.info(f"Spoonacular API: {'configured' if SPOONACULAR_KEY else 'NOT SET'}")
    logger.info(f"Fallback policy: {fallback_policy.mode}")

    app.run(host="0.0.0.0", port=port, debug=debug)
