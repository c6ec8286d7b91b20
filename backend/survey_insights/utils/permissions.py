"""Analytics roles and their static permission table."""

from typing import Dict, Iterable, Optional

ADMIN = "admin"
COORDINATOR = "coordinator"
ASSESSOR = "assessor"

ANALYTICS_ROLES = (ADMIN, COORDINATOR, ASSESSOR)

CAN_VIEW_ADMIN_METRICS = "can_view_admin_metrics"
CAN_VIEW_COORDINATOR_METRICS = "can_view_coordinator_metrics"
CAN_VIEW_ASSESSOR_METRICS = "can_view_assessor_metrics"
CAN_EXPORT_DATA = "can_export_data"
CAN_ACCESS_RECOMMENDATIONS = "can_access_recommendations"

PERMISSION_NAMES = (
    CAN_VIEW_ADMIN_METRICS,
    CAN_VIEW_COORDINATOR_METRICS,
    CAN_VIEW_ASSESSOR_METRICS,
    CAN_EXPORT_DATA,
    CAN_ACCESS_RECOMMENDATIONS,
)

DEFAULT_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    ADMIN: {name: True for name in PERMISSION_NAMES},
    COORDINATOR: {
        CAN_VIEW_ADMIN_METRICS: False,
        CAN_VIEW_COORDINATOR_METRICS: True,
        CAN_VIEW_ASSESSOR_METRICS: True,
        CAN_EXPORT_DATA: True,
        CAN_ACCESS_RECOMMENDATIONS: True,
    },
    ASSESSOR: {
        CAN_VIEW_ADMIN_METRICS: False,
        CAN_VIEW_COORDINATOR_METRICS: False,
        CAN_VIEW_ASSESSOR_METRICS: True,
        CAN_EXPORT_DATA: False,
        CAN_ACCESS_RECOMMENDATIONS: True,
    },
}


def permissions_for(role: Optional[str]) -> Optional[Dict[str, bool]]:
    if role not in DEFAULT_PERMISSIONS:
        return None
    return dict(DEFAULT_PERMISSIONS[role])


def has_permission(role: Optional[str], permission: str) -> bool:
    permissions = permissions_for(role)
    return bool(permissions and permissions.get(permission, False))


def authorize_access(role: Optional[str], required: Iterable[str]) -> bool:
    required = list(required)
    if not required:
        return True
    return any(has_permission(role, permission) for permission in required)


def role_for_username(username: str) -> str:
    if username == ADMIN:
        return ADMIN
    if username == COORDINATOR:
        return COORDINATOR
    return ASSESSOR
