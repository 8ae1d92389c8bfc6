# Overview: Brand routes; public listing and admin create/update.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_admin
from ..errors import StorefrontError, error_response
from ..services import brand_service

brands_bp = Blueprint("brands", __name__, url_prefix="/api/brands")
admin_brands_bp = Blueprint("admin_brands", __name__, url_prefix="/api/admin/brands")


@brands_bp.get("")
def list_brands():
    """Public; used to populate the storefront brand filter."""
    try:
        brands = brand_service.list_brands()
        return jsonify({
            "message": "Brands fetched successfully.",
            "data": [{"id": b.id, "name": b.name} for b in brands],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to fetch brands")
        return jsonify({"message": "Internal Server Error"}), 500


@admin_brands_bp.post("")
@require_admin
def create_brand():
    data = request.get_json(silent=True) or {}
    try:
        brand = brand_service.create_brand(data.get("name") if isinstance(data, dict) else None)
        return jsonify({"message": "Brand created successfully", "data": brand.to_dict()}), 201
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        current_app.logger.exception("Error creating brand")
        return jsonify({"message": "Error creating brand", "error": str(exc)}), 500


@admin_brands_bp.patch("/<brand_id>")
@require_admin
def update_brand(brand_id: str):
    try:
        brand = brand_service.update_brand(brand_id, request.get_json(silent=True))
        return jsonify({"message": "Brand updated successfully", "data": brand.to_dict()}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        current_app.logger.exception("Error updating brand")
        return jsonify({"message": "Error updating brand", "error": str(exc)}), 500
