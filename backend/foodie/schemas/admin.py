"""
Admin Pydantic Schemas
Models for user administration, migrations, orphaned data and error logs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from foodie.schemas.user import UserResponse


# ============================================================================
# Users
# ============================================================================

class AdminUserStats(BaseModel):
    total: int
    active: int
    admins: int


class AdminUserListResponse(BaseModel):
    users: List[UserResponse]
    stats: Optional[AdminUserStats] = None


class AdminUserUpdate(BaseModel):
    """Only sent fields change. Admins cannot change their own is_admin/is_active."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None
    is_admin: Optional[bool] = None


# ============================================================================
# Migrations
# ============================================================================

class MigrationStatusItem(BaseModel):
    version: str
    filename: str
    status: str
    executed_at: Optional[datetime] = None
    execution_time_ms: Optional[int] = None


class MigrationSummary(BaseModel):
    total: int
    completed: int
    pending: int
    schema_migrations_exists: bool


class MigrationStatusResponse(BaseModel):
    migrations: List[MigrationStatusItem]
    summary: MigrationSummary


class MigrationRunItem(BaseModel):
    version: str
    statements: int
    execution_time_ms: int


class MigrationRunResponse(BaseModel):
    success: bool
    executed: List[MigrationRunItem]
    message: str
    failed: Optional[str] = None
    error: Optional[str] = None


# ============================================================================
# Orphans
# ============================================================================

class OrphanItem(BaseModel):
    id: UUID
    name: str
    household_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class OrphanListResponse(BaseModel):
    collections: List[OrphanItem]
    ingredients: List[OrphanItem]
    recipes: List[OrphanItem]
    total: int


# ============================================================================
# Error logs
# ============================================================================

class ErrorLogItem(BaseModel):
    id: UUID
    timestamp: datetime
    error_type: str
    error_code: Optional[str] = None
    severity: str
    module: Optional[str] = None
    function: Optional[str] = None
    line_number: Optional[str] = None
    user_id: Optional[UUID] = None
    user_email: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None
    message: str
    stack_trace: Optional[str] = None
    context_data: Optional[Dict[str, Any]] = None
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ErrorLogListResponse(BaseModel):
    errors: List[ErrorLogItem]
    total: int
    limit: int
    offset: int


class ErrorLogStats(BaseModel):
    total: int
    unresolved: int
    by_severity: Dict[str, int]
    by_type: Dict[str, int]


class ErrorLogResolve(BaseModel):
    resolution_notes: Optional[str] = None


class AdminActionResponse(BaseModel):
    success: bool = True
    message: str
