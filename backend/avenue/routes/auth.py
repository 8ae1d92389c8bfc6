# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Customers self-register; admin accounts are only created from the CLI
- Login returns a bearer token; only its SHA-256 hash is stored
- Logout revokes the presented token
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import StorefrontError, error_response
from ..services import auth_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _start_session(user):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return {
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
    }


@auth_bp.post("/register")
def register_route():
    """
    Create a customer account and sign it in.

    Request body: email, name, password.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    try:
        user = auth_service.create_user(
            email=data.get("email"),
            name=data.get("name"),
            password=data.get("password"),
        )
        return jsonify({"message": "Registration successful", "data": _start_session(user)}), 201
    except StorefrontError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"message": "Internal Server Error"}), 500


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"message": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        if not user:
            current_app.logger.info("Failed login for %s from %s", email, request.remote_addr)
            return jsonify({"message": "Invalid credentials"}), 401

        return jsonify({"message": "Login successful", "data": _start_session(user)}), 200
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"message": "Internal Server Error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.session_token, reason="User logout")
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"message": "Internal Server Error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"message": "OK", "data": g.current_user.to_dict()}), 200
