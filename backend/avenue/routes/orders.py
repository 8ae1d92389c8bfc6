# Overview: Order routes; customer order tracking and the admin status workflow.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_admin, require_auth
from ..errors import StorefrontError, error_response
from ..services import order_service

orders_bp = Blueprint("orders", __name__, url_prefix="/api/me/orders")
admin_orders_bp = Blueprint("admin_orders", __name__, url_prefix="/api/admin/orders")


@orders_bp.get("")
@require_auth
def list_my_orders():
    try:
        orders = order_service.list_orders_for_user(g.current_user.id)
        return jsonify({
            "message": "Orders fetched successfully.",
            "data": [o.to_dict() for o in orders],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to fetch orders")
        return jsonify({"message": "Internal Server Error"}), 500


@orders_bp.get("/<order_number>")
@require_auth
def get_my_order(order_number: str):
    """
    Order detail with its tracking timeline.

    timeline.progressing is false for cancelled orders; timeline.stages is
    then null and the client shows a cancellation notice instead.
    """
    try:
        order = order_service.get_order_for_user(g.current_user.id, order_number)
        return jsonify({"message": "Order fetched successfully.", "data": order_service.order_detail(order)}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to fetch order %s", order_number)
        return jsonify({"message": "Internal Server Error"}), 500


@admin_orders_bp.get("")
@require_admin
def list_orders():
    """Query params: status (optional exact status filter)."""
    try:
        orders = order_service.list_orders(status=request.args.get("status"))
        return jsonify({"message": "Orders fetched successfully.", "data": [o.to_dict() for o in orders]}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        current_app.logger.exception("Error fetching orders")
        return jsonify({"message": "Error fetching orders", "error": str(exc)}), 500


@admin_orders_bp.get("/<order_number>")
@require_admin
def get_order(order_number: str):
    try:
        order = order_service.get_order(order_number)
        return jsonify({"message": "Order fetched successfully.", "data": order_service.order_detail(order)}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        current_app.logger.exception("Error fetching order %s", order_number)
        return jsonify({"message": "Error fetching order", "error": str(exc)}), 500


@admin_orders_bp.patch("/<order_number>")
@require_admin
def update_order(order_number: str):
    """Request body: status (required), note (optional)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data.get("status"):
        return jsonify({"message": "status is required"}), 400

    try:
        order = order_service.update_status(order_number, data["status"], note=data.get("note"))
        return jsonify({"message": "Order updated successfully", "data": order_service.order_detail(order)}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception as exc:
        current_app.logger.exception("Error updating order %s", order_number)
        return jsonify({"message": "Error updating order", "error": str(exc)}), 500
