# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, LargeBinary, PickleType, String
from sqlalchemy.orm import Mapped, mapped_column

from crowd.infrastructure.db.session import Base


class SessionRow(Base):
    __tablename__ = "crowd_sessions"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    last_access: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    logged_in: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    user_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", index=True
    )


class UserRow(Base):
    __tablename__ = "crowd_users"
    # ids of deleted users must never come back
    __table_args__ = {"sqlite_autoincrement": True}
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), unique=True, index=True)
    password_hash: Mapped[bytes] = mapped_column(LargeBinary)
    salt: Mapped[bytes] = mapped_column(LargeBinary)
    data: Mapped[Any] = mapped_column(PickleType, nullable=True)
