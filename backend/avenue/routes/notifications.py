# Overview: Routes for registering browser push subscriptions.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import StorefrontError, error_response
from ..services import push_subscription_service

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("/vapid-public-key")
def vapid_public_key():
    """Application server key the browser passes to pushManager.subscribe()."""
    key = current_app.config.get("VAPID_PUBLIC_KEY")
    if not key:
        return jsonify({"message": "Push notifications are not configured"}), 404
    return jsonify({"message": "OK", "data": {"public_key": key}}), 200


@notifications_bp.post("/subscribe")
@require_auth
def subscribe():
    """
    Request body: the browser's PushSubscription.toJSON(), i.e.
    {endpoint, expirationTime, keys: {p256dh, auth}}.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    try:
        subscription, created = push_subscription_service.subscribe(
            g.current_user.id,
            data.get("endpoint"),
            data.get("keys"),
            data.get("expirationTime"),
        )
        return jsonify({
            "message": "Subscription saved",
            "data": subscription.to_dict(),
        }), 201 if created else 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to save push subscription")
        return jsonify({"message": "Internal Server Error"}), 500


@notifications_bp.delete("/subscribe")
@require_auth
def unsubscribe():
    """Request body: {endpoint}."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data.get("endpoint"):
        return jsonify({"message": "endpoint is required"}), 400

    try:
        push_subscription_service.unsubscribe(g.current_user.id, data["endpoint"])
        return jsonify({"message": "Subscription removed"}), 200
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to remove push subscription")
        return jsonify({"message": "Internal Server Error"}), 500
