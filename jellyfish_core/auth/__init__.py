"""Authentication for Jellyfish Core.

- service: bcrypt password hashing for user cards
- token: JWT tokens naming a session card
- decorators: request authentication (guest fallback, @auth_required)
- api: /auth/login, /auth/logout, /auth/me

Auth endpoints are top-level routes, not under the /api/v2 prefix.
"""

from . import schemas, service, token

__all__ = ["schemas", "service", "token"]
