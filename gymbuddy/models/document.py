from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from gymbuddy.database import Base


class DocumentRow(Base):
    """One directory document, stored as JSON under its parent collection path."""

    __tablename__ = "documents"

    # Parent collection path, e.g. "users" or "chats/<key>/messages"
    collection: Mapped[str] = mapped_column(String(512), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    create_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    update_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_documents_collection_update_time", "collection", "update_time"),
    )
