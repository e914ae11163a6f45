"""
ops_console.services

Service layer.

Responsibilities:
- Wire the access core to its SQL collaborators (`access_service`).
- Own transaction boundaries for administrative changes (`admin_service`).
"""

# Package marker.
