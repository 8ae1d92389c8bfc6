# Overview: Routes for the signed-in user's address book.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import StorefrontError, error_response
from ..services import address_service

addresses_bp = Blueprint("addresses", __name__, url_prefix="/api/me/addresses")


@addresses_bp.get("")
@require_auth
def list_addresses():
    """The caller's addresses, default first."""
    try:
        addresses = address_service.list_addresses(g.current_user.id)
        return jsonify({
            "message": "Addresses fetched successfully.",
            "data": [a.to_dict() for a in addresses],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to fetch addresses")
        return jsonify({"message": "Internal Server Error"}), 500


@addresses_bp.post("")
@require_auth
def create_address():
    """
    Request body:
    - recipient_name, phone, street_address (required)
    - country_id, county_id, city_id (required, must form one active path)
    - is_default (optional; the first address is always the default)
    """
    try:
        address = address_service.create_address(g.current_user.id, request.get_json(silent=True))
        return jsonify({"message": "Address added successfully.", "data": address.to_dict()}), 201
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create address")
        return jsonify({"message": "Internal Server Error"}), 500


@addresses_bp.patch("/<address_id>")
@require_auth
def update_address(address_id: str):
    try:
        address = address_service.update_address(g.current_user.id, address_id, request.get_json(silent=True))
        return jsonify({"message": "Address updated successfully", "data": address.to_dict()}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update address %s", address_id)
        return jsonify({"message": "Internal Server Error"}), 500


@addresses_bp.post("/<address_id>/default")
@require_auth
def set_default_address(address_id: str):
    try:
        address = address_service.set_default(g.current_user.id, address_id)
        return jsonify({"message": "Default address updated", "data": address.to_dict()}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to set default address %s", address_id)
        return jsonify({"message": "Internal Server Error"}), 500


@addresses_bp.delete("/<address_id>")
@require_auth
def delete_address(address_id: str):
    try:
        promoted = address_service.delete_address(g.current_user.id, address_id)
        return jsonify({
            "message": "Address deleted successfully",
            "data": {"promoted_default_id": promoted.id if promoted else None},
        }), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to delete address %s", address_id)
        return jsonify({"message": "Internal Server Error"}), 500
