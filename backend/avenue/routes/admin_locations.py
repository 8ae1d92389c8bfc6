# Overview: Admin routes for managing countries, counties and cities.

"""
Admin location management.

All endpoints require an admin session (403 otherwise). Nodes are created
and patched, never deleted; PATCH {"is_active": false} retires one.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_admin
from ..errors import StorefrontError, error_response
from ..services import geography_service

admin_locations_bp = Blueprint("admin_locations", __name__, url_prefix="/api/admin/locations")


def _internal_error(message: str, exc: Exception):
    current_app.logger.exception(message)
    return jsonify({"message": message, "error": str(exc)}), 500


# =============================================================================
# COUNTRIES
# =============================================================================

@admin_locations_bp.get("/countries")
@require_admin
def list_countries():
    try:
        countries = geography_service.list_all_countries()
        return jsonify({"message": "Countries fetched successfully.", "data": [c.to_dict() for c in countries]}), 200
    except Exception as exc:
        return _internal_error("Error fetching countries", exc)


@admin_locations_bp.post("/countries")
@require_admin
def create_country():
    """Request body: name (required), is_active."""
    try:
        country = geography_service.create_country(request.get_json(silent=True))
        return jsonify({"message": "Country created successfully", "data": country.to_dict()}), 201
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        return _internal_error("Error creating country", exc)


@admin_locations_bp.patch("/countries/<country_id>")
@require_admin
def update_country(country_id: str):
    try:
        country = geography_service.update_country(country_id, request.get_json(silent=True))
        return jsonify({"message": "Country updated successfully", "data": country.to_dict()}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        return _internal_error("Error updating country", exc)


# =============================================================================
# COUNTIES
# =============================================================================

@admin_locations_bp.get("/counties")
@require_admin
def list_counties():
    try:
        counties = geography_service.list_all_counties()
        return jsonify({
            "message": "Counties fetched successfully.",
            "data": [c.to_dict(include_parent=True) for c in counties],
        }), 200
    except Exception as exc:
        return _internal_error("Error fetching counties", exc)


@admin_locations_bp.post("/counties")
@require_admin
def create_county():
    """Request body: name, country_id (both required), is_active."""
    try:
        county = geography_service.create_county(request.get_json(silent=True))
        return jsonify({"message": "County created successfully", "data": county.to_dict()}), 201
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        return _internal_error("Error creating county", exc)


@admin_locations_bp.patch("/counties/<county_id>")
@require_admin
def update_county(county_id: str):
    try:
        county = geography_service.update_county(county_id, request.get_json(silent=True))
        return jsonify({"message": "County updated successfully", "data": county.to_dict()}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        return _internal_error("Error updating county", exc)


# =============================================================================
# CITIES
# =============================================================================

@admin_locations_bp.get("/cities")
@require_admin
def list_cities():
    try:
        cities = geography_service.list_all_cities()
        return jsonify({
            "message": "Cities fetched successfully.",
            "data": [c.to_dict(include_parent=True) for c in cities],
        }), 200
    except Exception as exc:
        return _internal_error("Error fetching cities", exc)


@admin_locations_bp.post("/cities")
@require_admin
def create_city():
    """
    Request body:
    - name, county_id (required)
    - delivery_fee (int, default 0), is_active
    - country_id (optional; must be the county's country if given)
    """
    try:
        city = geography_service.create_city(request.get_json(silent=True))
        return jsonify({"message": "City created successfully", "data": city.to_dict()}), 201
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        return _internal_error("Error creating city", exc)


@admin_locations_bp.patch("/cities/<city_id>")
@require_admin
def update_city(city_id: str):
    try:
        city = geography_service.update_city(city_id, request.get_json(silent=True))
        return jsonify({"message": "City updated successfully", "data": city.to_dict()}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        return _internal_error("Error updating city", exc)
