"""
User and Role models — the credential store.

Each User is a login identity (username + hashed password) holding one or
more Roles through the `user_roles` association table. Users are created at
signup and not mutated afterwards.

Roles:
  - ROLE_ADMIN: Full access, including creating and deleting customers
  - ROLE_MODERATOR: Bank employee, reads customers and updates phones
  - ROLE_USER: Default role for signup, same customer access as a moderator

Role rows are reference data: seeded once at startup (idempotently) and
never deleted. The role set is re-read from the database on every request,
so the accounts table is the source of truth for a principal's roles.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Integer, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cliente_api.database import Base


class RoleName(str, enum.Enum):
    """
    Closed set of roles a user can hold.

    Inherits from str so the value serializes naturally to JSON.
    """
    USER = "ROLE_USER"
    MODERATOR = "ROLE_MODERATOR"
    ADMIN = "ROLE_ADMIN"


# Many-to-many: users <-> roles
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[RoleName] = mapped_column(
        Enum(RoleName),
        unique=True,
        nullable=False,
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Username is the login identifier and the JWT subject
    username: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # selectin: roles are loaded eagerly with the user, no lazy IO in async code
    roles: Mapped[list[Role]] = relationship(
        secondary=user_roles,
        lazy="selectin",
    )

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name.value for role in self.roles)
