import uuid
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

RoleName = Literal["ADMIN", "VENDOR", "CUSTOMER"]


class AuthUser(BaseModel):
    """
    Represents the authenticated caller, decoded from the bearer token.

    One instance is built per request (or per WebSocket connection) and
    passed explicitly to handlers and services.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: RoleName = "CUSTOMER"
    vendor_profile_id: Optional[str] = None

    @field_validator("user_id", "vendor_profile_id")
    @classmethod
    def must_be_uuid(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            uuid.UUID(v)
        return v

    @property
    def user_uuid(self) -> uuid.UUID:
        return uuid.UUID(self.user_id)

    @property
    def vendor_profile_uuid(self) -> Optional[uuid.UUID]:
        return uuid.UUID(self.vendor_profile_id) if self.vendor_profile_id else None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def is_vendor(self) -> bool:
        return self.role == "VENDOR"

    @property
    def is_customer(self) -> bool:
        return self.role == "CUSTOMER"
