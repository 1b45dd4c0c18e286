# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

# backend/vidly/routes/returns.py
"""
Return Processing API Routes

DESIGN:
- One endpoint: POST /api/returns with {customerId, movieId}
- Auth is checked first, then input, then the rental lookup
- Errors map to 400 (bad input / already returned), 404 (no rental)

SECURITY:
- Valid session token required (Authorization: Bearer or x-auth-token)
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import return_service
from ..services.return_service import (
    RentalAlreadyProcessedError,
    RentalNotFoundError,
    MovieNotFoundError,
    ReturnError,
)
from ..validation import ValidationError, require_identifiers
from ..decorators import require_auth
from vidly.time_utils import get_clock


returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.post("")
@require_auth
def process_return_route():
    """
    Return a rented movie.

    Request body:
    {
        "customerId": 12,
        "movieId": 34
    }

    Returns:
        200: The closed rental (dateOut, dateReturned, rentalFee, customer, movie)
        400: customerId/movieId missing or malformed, or rental already processed
        401: Missing or invalid credential
        404: No rental for this customer/movie
    """
    try:
        ids = require_identifiers(request.get_json(silent=True), "customerId", "movieId")

        rental = return_service.process_return(
            customer_id=ids["customerId"],
            movie_id=ids["movieId"],
            now=get_clock()()
        )

        return jsonify(rental.to_dict()), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except RentalAlreadyProcessedError as e:
        return jsonify({"error": "Return already processed", "message": str(e)}), 400
    except (RentalNotFoundError, MovieNotFoundError) as e:
        return jsonify({"error": str(e)}), 404
    except ReturnError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to process return")
        return jsonify({"error": "Internal server error"}), 500
