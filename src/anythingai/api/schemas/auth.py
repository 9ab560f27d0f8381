# Auth schemas.
# Created: 2026-09-05

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = ""
    password: str = ""
    department_name: str = Field("", alias="departmentName")


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""
