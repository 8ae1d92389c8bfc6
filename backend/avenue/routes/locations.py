# Overview: Public location routes that feed the cascading country -> county -> city dropdowns.

from flask import Blueprint, current_app, jsonify

from ..errors import StorefrontError, error_response
from ..services import geography_service

locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


@locations_bp.get("/countries")
def list_countries():
    try:
        countries = geography_service.list_countries()
        return jsonify({
            "message": "Countries fetched successfully.",
            "data": [c.to_dict() for c in countries],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to fetch countries")
        return jsonify({"message": "Internal Server Error"}), 500


@locations_bp.get("/countries/<country_id>/counties")
def list_counties(country_id: str):
    """Active counties of a country. 400 for a malformed id, [] for an unknown one."""
    try:
        counties = geography_service.list_counties(country_id)
        return jsonify({
            "message": "Counties fetched successfully.",
            "data": [c.to_dict() for c in counties],
        }), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to fetch counties for country %s", country_id)
        return jsonify({"message": "Internal Server Error"}), 500


@locations_bp.get("/counties/<county_id>/cities")
def list_cities(county_id: str):
    try:
        cities = geography_service.list_cities(county_id)
        return jsonify({
            "message": "Cities fetched successfully.",
            "data": [c.to_dict() for c in cities],
        }), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to fetch cities for county %s", county_id)
        return jsonify({"message": "Internal Server Error"}), 500
