"""Database models."""

from __future__ import annotations

from sqlalchemy import Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from betlink.db.base import Base, TimestampMixin
from betlink.db.enums import ConversationState


class SessionRecord(Base, TimestampMixin):
    __tablename__ = "user_sessions"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    state: Mapped[ConversationState] = mapped_column(
        Enum(
            ConversationState,
            name="conversation_state",
            native_enum=True,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ConversationState.IDLE,
        server_default=ConversationState.IDLE.value,
    )
    site_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    aff_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    ad_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    campaign: Mapped[str | None] = mapped_column(Text, nullable=True)
