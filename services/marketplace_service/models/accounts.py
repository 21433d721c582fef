"""Account models: users and vendor profiles."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.marketplace_service.models.enums import (
    ModerationStatus,
    Role,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class User(Base):
    """Credential store: one row per registered account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, values_callable=enum_values, name="role_enum"),
        default=Role.CUSTOMER,
        server_default="CUSTOMER",
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    vendor_profile = relationship(
        "VendorProfile", back_populates="user", uselist=False
    )

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"


class VendorProfile(Base):
    """Shop owned by a VENDOR user; admin approval gates product listing."""

    __tablename__ = "vendor_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    shop_name: Mapped[str] = mapped_column(String(255), nullable=False)
    shop_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ModerationStatus] = mapped_column(
        SAEnum(
            ModerationStatus,
            values_callable=enum_values,
            name="moderation_status_enum",
        ),
        default=ModerationStatus.PENDING,
        server_default="PENDING",
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    user = relationship("User", back_populates="vendor_profile")
    products = relationship(
        "Product", back_populates="vendor", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<VendorProfile {self.shop_name} status={self.status}>"
