# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the user-management endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class ChangeAccessRequest(BaseModel):
    active: bool
    suspend: bool


class ChangeRoleRequest(BaseModel):
    role_uid: str


# -- Responses -------------------------------------------------------------


class RoleRef(BaseModel):
    name: str
    uid: str

    model_config = {"from_attributes": True}


class VisitorRow(BaseModel):
    id: str
    device: Optional[str] = None
    city: Optional[str] = None
    region_name: Optional[str] = None
    country: Optional[str] = None

    model_config = {"from_attributes": True}


class UserDetail(BaseModel):
    uid: str
    username: str
    email: str
    status: str
    active: bool
    suspend: bool
    first_login: bool
    google_auth: bool
    subscribed: bool
    time_added: datetime
    last_login_at: Optional[datetime] = None
    role: Optional[RoleRef] = None
    visitors: List[VisitorRow]


# -- Audit log responses ---------------------------------------------------


class AuditLogRow(BaseModel):
    id: int
    user_email: Optional[str] = None     # resolved from user_id
    actor_email: Optional[str] = None    # resolved from actor_id
    action: str
    detail: Optional[str] = None
    request_ip: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogRow]
