# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/pinkpost/routes/auth.py
"""
Authentication API routes

Customers self-register; admins are created with `flask users create-admin`.
Tokens are opaque bearer strings returned once at register/login.
"""

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..services import auth_service
from ..services import notification_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status_code: int, message: str):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": message,
    }), status_code


@auth_bp.post("/register")
def register_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.create_user(
            email=email,
            password=password,
            full_name=data.get("full_name"),
            phone=data.get("phone"),
            company=data.get("company"),
            license_number=data.get("license_number"),
        )

        try:
            notification_service.create_welcome_notification(user.id, user.full_name or user.email)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to create welcome notification")

        return _session_response(user, 201, "Registration successful")

    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        return _session_response(user, 200, "Login successful")

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()})
