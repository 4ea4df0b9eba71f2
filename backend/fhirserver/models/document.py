"""SQLAlchemy model for stored resource documents."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from fhirserver.database import Base


class Document(Base):
    """A resource stored as raw JSON inside a named collection.

    Each resource kind owns one collection. The id is the 24-character
    hex ObjectId assigned on create and is duplicated inside ``data``.
    """

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(24), primary_key=True)

    # JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
    data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    __table_args__ = (
        Index(
            "idx_documents_data_gin",
            "data",
            postgresql_using="gin",
        ),
    )

    def __repr__(self) -> str:
        return f"<Document(collection={self.collection}, id={self.id})>"
