"""OpenAPI customization utilities.

Enriches the generated schema with:
- Tags metadata
- ``ApiKeyAuth`` (header ``x-api-key``) on the protected post routes
- ``BearerAuth`` (JWT) on the current-user route

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Posts", "description": "Public, rate-limited post listings and creation."},
    {"name": "Protected", "description": "Post management; requires the x-api-key header."},
    {"name": "Auth", "description": "Registration, login and the current user."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security schemes."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        security_schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "x-api-key",
                "description": "Provide an allow-listed key via the x-api-key header.",
            },
        )
        security_schemes.setdefault(
            "BearerAuth",
            {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in existing_tag_names)

        for path, methods in schema.get("paths", {}).items():
            if path.startswith("/api/protected/"):
                requirement = [{"ApiKeyAuth": []}]
            elif path == "/api/auth/me":
                requirement = [{"BearerAuth": []}]
            else:
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = requirement

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
