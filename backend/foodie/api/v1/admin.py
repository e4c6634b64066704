"""
Admin API Endpoints
Administrative endpoints, all restricted to admins.

Endpoints:
- GET/PUT/DELETE /admin/users[/{id}] - User administration
- GET /admin/migrations/status - Applied and pending SQL migrations
- POST /admin/migrations/run - Apply pending migrations
- GET /admin/orphans, DELETE /admin/orphans/{type}/{id} - Unreferenced data
- GET /admin/error-logs[/stats], POST /admin/error-logs/{id}/resolve - Error log review
"""

import logging
import secrets
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import require_admin
from foodie.core.config import settings
from foodie.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.admin import (
    AdminActionResponse,
    AdminUserListResponse,
    AdminUserUpdate,
    ErrorLogItem,
    ErrorLogListResponse,
    ErrorLogResolve,
    ErrorLogStats,
    MigrationRunResponse,
    MigrationStatusResponse,
    OrphanListResponse,
)
from foodie.schemas.user import UserResponse
from foodie.services import admin_service, migration_service
from foodie.services.error_logging import error_logger


logger = logging.getLogger("migrations")

router = APIRouter()


# ============================================================================
# Users
# ============================================================================

@router.get("/users", response_model=AdminUserListResponse)
def list_users(
    include_stats: bool = Query(False),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_users(db, include_stats)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return admin_service.get_user(db, user_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Errors:
    - 400: Empty update, duplicate email, or changing your own admin/active flag
    - 404: Unknown user
    """
    try:
        return admin_service.update_user(db, admin, user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/users/{user_id}", response_model=AdminActionResponse)
def delete_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        email = admin_service.delete_user(db, admin, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AdminActionResponse(message=f"Deleted user {email}")


# ============================================================================
# Migrations
# ============================================================================

def _check_migration_token(token: Optional[str]) -> None:
    """In production the X-Migration-Token header must match MIGRATION_TOKEN."""
    if not settings.is_production:
        return
    if not settings.MIGRATION_TOKEN or not token or not secrets.compare_digest(token, settings.MIGRATION_TOKEN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid migration token")


@router.get("/migrations/status", response_model=MigrationStatusResponse)
def migration_status(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return migration_service.get_migration_status(db.get_bind())


@router.post("/migrations/run", response_model=MigrationRunResponse)
def run_migrations(
    request: Request,
    x_migration_token: Optional[str] = Header(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Apply pending migration files in order, each in its own transaction.

    Errors:
    - 403: Missing or wrong X-Migration-Token in production
    - 500: A migration failed (later files are left pending)
    """
    _check_migration_token(x_migration_token)

    logger.info(f"Running migrations (requested by {admin.email})")
    result = migration_service.run_migrations(db.get_bind())
    if not result["success"]:
        error_logger.log_error(
            RuntimeError(result["error"]),
            request=request,
            user=admin,
            context={"operation": "run_migrations", "failed": result["failed"]}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{result['message']}: {result['error']}"
        )
    return result


# ============================================================================
# Orphaned data
# ============================================================================

@router.get("/orphans", response_model=OrphanListResponse)
def list_orphans(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_orphaned(db)


@router.delete("/orphans/{resource_type}/{resource_id}", response_model=AdminActionResponse)
def delete_orphan(
    resource_type: str,
    resource_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Errors:
    - 400: Invalid type, or the row is referenced again
    - 404: Unknown id
    """
    try:
        name = admin_service.delete_orphaned(db, resource_type, resource_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AdminActionResponse(message=f"Deleted {resource_type} '{name}'")


# ============================================================================
# Error logs
# ============================================================================

@router.get("/error-logs", response_model=ErrorLogListResponse)
def list_error_logs(
    severity: Optional[str] = Query(None),
    error_type: Optional[str] = Query(None),
    resolved: Optional[bool] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin_service.list_error_logs(
        db,
        severity=severity,
        error_type=error_type,
        resolved=resolved,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )


@router.get("/error-logs/stats", response_model=ErrorLogStats)
def error_log_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin_service.get_error_log_stats(db)


@router.post("/error-logs/{error_id}/resolve", response_model=ErrorLogItem)
def resolve_error_log(
    error_id: UUID,
    data: ErrorLogResolve,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return admin_service.resolve_error_log(db, admin, error_id, data.resolution_notes)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
