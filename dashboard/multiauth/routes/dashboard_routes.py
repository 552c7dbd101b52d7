"""
Dashboard Routes Module
=======================

Role landing pages protected by the route guard. Each answers with the
active role's profile; rendering is left to the UI.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from multiauth.core.dependencies.route_guard import ROLE_DASHBOARDS, require_active_role
from multiauth.models.role_enum import RoleKey
from multiauth.schemas.session import SessionRecord

router = APIRouter(tags=["Dashboards"])


def _dashboard_body(record: SessionRecord) -> Dict[str, Any]:
    return {
        "role": record.role.value,
        "profile": record.profile,
    }


@router.get(ROLE_DASHBOARDS[RoleKey.ADMIN])
def admin_dashboard(
    record: SessionRecord = Depends(require_active_role(RoleKey.ADMIN)),
) -> Dict[str, Any]:
    return _dashboard_body(record)


@router.get(ROLE_DASHBOARDS[RoleKey.MODERATOR])
def moderator_dashboard(
    record: SessionRecord = Depends(require_active_role(RoleKey.MODERATOR)),
) -> Dict[str, Any]:
    return _dashboard_body(record)


@router.get(ROLE_DASHBOARDS[RoleKey.EMPLOYEE])
def employee_dashboard(
    record: SessionRecord = Depends(require_active_role(RoleKey.EMPLOYEE)),
) -> Dict[str, Any]:
    return _dashboard_body(record)


@router.get(ROLE_DASHBOARDS[RoleKey.TRADER])
def trader_dashboard(
    record: SessionRecord = Depends(require_active_role(RoleKey.TRADER)),
) -> Dict[str, Any]:
    return _dashboard_body(record)


@router.get(ROLE_DASHBOARDS[RoleKey.CLIENT])
def client_home(
    record: SessionRecord = Depends(require_active_role(RoleKey.CLIENT)),
) -> Dict[str, Any]:
    return _dashboard_body(record)
