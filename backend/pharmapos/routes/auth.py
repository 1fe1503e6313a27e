# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Accounts are created by an administrator (CLI), never self-registered
- Login returns a bearer token plus the screen the user should land on
- Login and logout are written to the audit log
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services.auth_service import AuthenticationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """Self-registration is disabled; use `flask users create`."""
    return jsonify({
        "error": "Self-registration is disabled. Contact an administrator to create an account."
    }), 403


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email + password and create a session token.

    Returns user, token and redirect ("/admin" for admins, "/pos" otherwise).
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user, token = auth_service.login(
            email,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "redirect": auth_service.home_path_for(user),
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the caller's token and drop their in-progress cart."""
    try:
        auth_service.logout(g.current_user, g.auth_token)
        carts = current_app.extensions.get("pharmapos.carts")
        if carts is not None:
            carts.discard(g.current_user.id)
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user and landing screen for a still-valid token."""
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "redirect": auth_service.home_path_for(user),
    }), 200
