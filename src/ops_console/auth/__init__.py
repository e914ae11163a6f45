"""
ops_console.auth

Bearer-token identity for the console API.

Responsibilities:
- Issue and validate JWTs carrying the identity (`sub`, `email`).
- Turn a request into an `access.session.Identity` (or none).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Tokens never carry the role; the role directory is read on every request.
