"""
ops_console.access.roles

Role, permission-type and skill vocabularies plus the static routing tables.

Responsibilities:
- Define the closed `Role`, `PermissionType` and `Skill` enumerations.
- Hold the admin-override set, role home routes, smart-redirect routes and the
  blocked-role/redirect configuration used by console admin areas.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from types import MappingProxyType


class Role(enum.StrEnum):
    owner = "owner"
    admin = "admin"
    supply = "supply"
    supply_admin = "supply_admin"
    supply_lead = "supply_lead"
    ejecutivo_ventas = "ejecutivo_ventas"
    planificador = "planificador"
    monitoring = "monitoring"
    monitoring_supervisor = "monitoring_supervisor"
    bi = "bi"
    instalador = "instalador"
    tecnico_instalador = "tecnico_instalador"
    custodio = "custodio"
    coordinador_operaciones = "coordinador_operaciones"
    jefe_seguridad = "jefe_seguridad"
    analista_seguridad = "analista_seguridad"
    soporte = "soporte"
    customer_success = "customer_success"
    pending = "pending"
    unverified = "unverified"


class PermissionType(enum.StrEnum):
    page = "page"
    feature = "feature"
    action = "action"
    module = "module"


class Skill(enum.StrEnum):
    dashboard_view = "dashboard_view"
    leads_management = "leads_management"
    leads_approval = "leads_approval"
    user_management = "user_management"
    role_management = "role_management"
    monitoring_view = "monitoring_view"
    monitoring_manage = "monitoring_manage"
    services_view = "services_view"
    services_manage = "services_manage"
    installer_portal_only = "installer_portal_only"
    custodio_tracking_only = "custodio_tracking_only"
    supply_chain_view = "supply_chain_view"
    supply_chain_manage = "supply_chain_manage"
    reports_view = "reports_view"
    reports_export = "reports_export"
    settings_view = "settings_view"
    settings_manage = "settings_manage"
    wms_view = "wms_view"
    wms_manage = "wms_manage"
    tickets_view = "tickets_view"
    tickets_manage = "tickets_manage"
    admin_full_access = "admin_full_access"


# Universal allow: these roles pass every permission check, stored rows or not.
ADMIN_OVERRIDE_ROLES: frozenset[str] = frozenset({Role.admin, Role.owner})

# Unknown or missing roles land on the generic home, which only shows what the
# permission rows allow.
DEFAULT_HOME_ROUTE = "/home"

ROLE_HOME_ROUTES: Mapping[str, str] = MappingProxyType(
    {
        Role.owner: "/executive-dashboard",
        Role.admin: "/executive-dashboard",
        Role.bi: "/executive-dashboard",
        Role.supply: "/leads",
        Role.supply_admin: "/leads",
        Role.supply_lead: "/leads",
        Role.ejecutivo_ventas: "/leads",
        Role.planificador: "/planeacion",
        Role.coordinador_operaciones: "/planeacion",
        Role.monitoring: "/monitoring",
        Role.monitoring_supervisor: "/monitoring",
        Role.jefe_seguridad: "/monitoring",
        Role.analista_seguridad: "/monitoring",
        Role.instalador: "/installers/portal",
        Role.tecnico_instalador: "/installers/portal",
        Role.custodio: "/custodian",
        Role.soporte: "/tickets",
        Role.customer_success: "/customer-success",
        Role.pending: DEFAULT_HOME_ROUTE,
        Role.unverified: DEFAULT_HOME_ROUTE,
    }
)

# Generic dashboard entry points that some roles skip in favour of their module.
DASHBOARD_ROOTS: frozenset[str] = frozenset({"/dashboard"})

SMART_REDIRECT_ROUTES: Mapping[str, str] = MappingProxyType(
    {
        Role.ejecutivo_ventas: "/leads",
        Role.supply: "/leads",
        Role.supply_admin: "/leads",
        Role.supply_lead: "/leads",
        Role.custodio: "/custodian",
        Role.instalador: "/installers/portal",
    }
)

# Field and not-yet-activated roles never see admin areas.
ADMIN_AREA_BLOCKED_ROLES: frozenset[str] = frozenset(
    {Role.custodio, Role.instalador, Role.tecnico_instalador, Role.pending, Role.unverified}
)

BLOCKED_ROLE_REDIRECTS: Mapping[str, str] = MappingProxyType(
    {
        Role.custodio: "/custodian",
        Role.instalador: "/installers/portal",
        Role.tecnico_instalador: "/installers/portal",
        Role.pending: DEFAULT_HOME_ROUTE,
        Role.unverified: DEFAULT_HOME_ROUTE,
    }
)


def parse_role(value: str | None) -> Role | None:
    """Map a stored role string onto `Role`; unknown or empty values yield None."""

    if not value:
        return None
    try:
        return Role(value.strip())
    except ValueError:
        return None


def is_admin_override(role: str | None) -> bool:
    return role is not None and role in ADMIN_OVERRIDE_ROLES


# --- Module Notes -----------------------------------------------------------
# Guards, the redirect policy and the admin API all read these tables; add a role
# here (and to ROLE_HOME_ROUTES) rather than hard-coding its name at a call site.
