"""
ops_console.api

HTTP surface of the ops console access service.

Responsibilities:
- FastAPI app factory and router modules.
- Guard dependencies translating access outcomes into responses.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: authentication, guard evaluation and delegation to services.
