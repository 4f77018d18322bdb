from __future__ import annotations

import re

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..common.acl import current_user
from ..common.errors import Conflict, Unauthenticated, ValidationError
from ..extensions import db
from ..models import User


auth_bp = Blueprint("auth", __name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8
EMAIL_TAKEN = "User with this email already exists"


def _credentials() -> tuple[str, str]:
    payload = request.get_json(silent=True) or {}
    email = payload.get("email")
    password = payload.get("password")
    if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
        raise ValidationError("Email and password are required", code="INVALID_CREDENTIALS")
    return email.strip().lower(), password


def _token_for(user: User) -> str:
    return create_access_token(identity=user.id, additional_claims={"email": user.email})


@auth_bp.post("/signup")
def signup():
    email, password = _credentials()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Email address is invalid.", code="INVALID_EMAIL")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            code="INVALID_PASSWORD",
        )

    if User.query.filter(func.lower(User.email) == email).one_or_none() is not None:
        raise Conflict(EMAIL_TAKEN, code="USER_EXISTS")

    user = User(email=email)
    user.set_password(password)
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError as error:
        db.session.rollback()
        raise Conflict(EMAIL_TAKEN, code="USER_EXISTS") from error

    current_app.logger.info("User %s signed up", user.id)
    return jsonify({"message": "User created successfully", "user": user.summary()}), 201


@auth_bp.post("/login")
def login():
    email, password = _credentials()

    user = User.query.filter(func.lower(User.email) == email).one_or_none()
    if user is None or not user.verify_password(password):
        raise Unauthenticated("Invalid email or password.", code="INVALID_CREDENTIALS")

    return jsonify({"message": "Login successful", "token": _token_for(user)})


@auth_bp.get("/profile")
@jwt_required()
def profile():
    user = current_user()
    return jsonify(user.to_dict())
