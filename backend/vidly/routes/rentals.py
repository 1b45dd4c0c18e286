# Overview: Flask API routes for rental checkout and lookup.

# backend/vidly/routes/rentals.py
"""
Rental API Routes

- POST /api/rentals          check a movie out to a customer
- GET  /api/rentals          list rentals (filters: active, customerId, limit)
- GET  /api/rentals/<id>     one rental

All routes require a valid session token.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import rental_service
from ..services.rental_service import (
    CustomerNotFoundError,
    MovieNotFoundError,
    MovieOutOfStockError,
    RentalNotFoundError,
    RentalError,
)
from ..validation import MAX_IDENTIFIER, ValidationError, parse_identifier, require_identifiers
from ..decorators import require_auth
from vidly.time_utils import get_clock


rentals_bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")

MAX_LIST_LIMIT = 200


@rentals_bp.post("")
@require_auth
def create_rental_route():
    """
    Check a movie out to a customer.

    Request body:
    {
        "customerId": 12,
        "movieId": 34
    }

    Returns:
        201: New active rental
        400: Invalid input or movie out of stock
        404: Customer or movie not found
    """
    try:
        ids = require_identifiers(request.get_json(silent=True), "customerId", "movieId")

        rental = rental_service.create_rental(
            customer_id=ids["customerId"],
            movie_id=ids["movieId"],
            now=get_clock()()
        )

        return jsonify(rental.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except MovieOutOfStockError as e:
        return jsonify({"error": str(e)}), 400
    except (CustomerNotFoundError, MovieNotFoundError) as e:
        return jsonify({"error": str(e)}), 404
    except RentalError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create rental")
        return jsonify({"error": "Internal server error"}), 500


@rentals_bp.get("/<int:rental_id>")
@require_auth
def get_rental_route(rental_id: int):
    if rental_id > MAX_IDENTIFIER:
        return jsonify({"error": f"Rental {rental_id} not found"}), 404

    try:
        rental = rental_service.get_rental(rental_id)
        return jsonify(rental.to_dict()), 200
    except RentalNotFoundError as e:
        return jsonify({"error": str(e)}), 404


@rentals_bp.get("")
@require_auth
def list_rentals_route():
    """
    List rentals, newest checkout first.

    Query params:
    - active: "true" (unreturned only) or "false" (returned only)
    - customerId: Filter by customer
    - limit: Max rentals to show (default: 50, max: 200)
    """
    active_param = request.args.get("active")
    if active_param is None:
        active = None
    elif active_param.lower() in ("true", "1"):
        active = True
    elif active_param.lower() in ("false", "0"):
        active = False
    else:
        return jsonify({"error": "active must be true or false"}), 400

    customer_id = None
    if request.args.get("customerId") is not None:
        try:
            customer_id = parse_identifier(request.args.get("customerId"), "customerId")
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400

    limit = request.args.get("limit", 50, type=int)
    limit = max(1, min(limit, MAX_LIST_LIMIT))

    rentals = rental_service.list_rentals(active=active, customer_id=customer_id, limit=limit)

    return jsonify({
        "rentals": [r.to_dict() for r in rentals]
    }), 200
