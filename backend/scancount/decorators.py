# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import auth_service


def require_auth(f):
    """
    Require a bearer token and establish caller context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.client_id: Tenant scope for inventory, vendors and sessions
    - g.user_id: Caller that owns scanning sessions
    - g.caller: The full CallerContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Unknown or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        caller = auth_service.resolve_token(token)

        if not caller:
            return jsonify({"error": "Invalid or revoked token"}), 401

        g.client_id = caller.client_id
        g.user_id = caller.user_id
        g.caller = caller

        return f(*args, **kwargs)

    return decorated_function
