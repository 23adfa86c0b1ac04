# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints.

The dashboard client speaks camelCase for a handful of fields (``otpId``,
``otpCode``, ``accessToken``, ``redirectRoute``); those are aliases here and
Python code uses the snake_case names.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

_ALIASED = {"populate_by_name": True}


# -- Requests --------------------------------------------------------------


class SignupRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(max_length=128)
    query: str  # visitor fingerprint id


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    query: str


class VerifyOtpRequest(BaseModel):
    otp_id: Optional[str] = Field(default=None, alias="otpId")
    otp_code: Optional[str] = Field(default=None, alias="otpCode")

    model_config = _ALIASED


class DeleteOtpRequest(BaseModel):
    email: EmailStr
    otp_id: str = Field(alias="otpId")

    model_config = _ALIASED


class GoogleAuthRequest(BaseModel):
    username: str = ""
    email: Optional[EmailStr] = None
    uid: Optional[str] = None  # Google account id
    profile_pic: Optional[str] = None
    query: str


class ForgotPasswordRequest(BaseModel):
    email: Optional[EmailStr] = None
    query: str


class ChangePasswordRequest(BaseModel):
    uid: Optional[str] = None
    password: Optional[str] = None


# -- Resolved role / permissions -----------------------------------------


class ModuleStatus(BaseModel):
    active: bool
    maintenance: bool


class ModuleRef(BaseModel):
    slug: str
    uid: str
    status: ModuleStatus


class Actions(BaseModel):
    get: bool = False
    post: bool = False
    put: bool = False
    delete: bool = False


class PermissionView(BaseModel):
    module: ModuleRef
    actions: Actions


class RoleView(BaseModel):
    name: str
    slug: str
    uid: str
    permissions: List[PermissionView]


# -- Responses -------------------------------------------------------------


class SessionUser(BaseModel):
    username: str
    email: str
    uid: str
    profile_pic: Optional[str] = None
    g_auth: bool
    theme: bool
    first_login: bool
    redirect_route: str = Field(alias="redirectRoute")
    role: RoleView

    model_config = _ALIASED


class SessionResponse(BaseModel):
    status: bool = True
    message: str
    user: SessionUser
    access_token: str = Field(alias="accessToken")

    model_config = _ALIASED


class OtpIssuedResponse(BaseModel):
    status: bool = True
    message: str
    otp_id: str = Field(alias="otpId")
    username: str
    email: str

    model_config = _ALIASED


class MessageResponse(BaseModel):
    status: bool = True
    message: str
