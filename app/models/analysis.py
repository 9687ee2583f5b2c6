import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Analysis(Base):
    """One persisted summarization + bias run over an uploaded document."""

    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Document metadata captured at upload time
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)  # txt | pdf | docx
    file_size: Mapped[int] = mapped_column(BigInteger, default=0)
    last_modified: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Normalized model output
    summary_text: Mapped[str] = mapped_column(Text, default="")
    bias_report_text: Mapped[str] = mapped_column(Text, default="")

    # Aggregates over parsed findings; findings themselves are not stored
    bias_count: Mapped[int] = mapped_column(Integer, default=0)
    bias_confidence: Mapped[float] = mapped_column(Float, default=0.0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="analyses")  # noqa: F821
