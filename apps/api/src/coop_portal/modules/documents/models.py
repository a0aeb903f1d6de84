"""
Document Register Models

Documents filed with a county or cooperative (by-laws, audited accounts,
circulars ...) and the log of who uploaded, changed, viewed or removed them.
Supporting documents attached to applications are not registered here; those
records keep the object path themselves.
"""

import enum
import uuid

from sqlalchemy import BigInteger, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class DocumentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


class DocumentAction(str, enum.Enum):
    UPLOAD = "UPLOAD"
    UPDATE = "UPDATE"
    ARCHIVE = "ARCHIVE"
    DELETE = "DELETE"
    VIEW = "VIEW"


class Document(BaseModel):
    """A registered document, numbered ``DOC-{year}-{seq:05d}``."""

    __tablename__ = "documents"

    document_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    sectoral_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # NULL for county-wide documents
    cooperative_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    storage_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, name="document_status"),
        nullable=False,
        default=DocumentStatus.ACTIVE,
    )

    __table_args__ = (Index("ix_documents_status", "status"),)

    def __repr__(self) -> str:
        return f"<Document(number={self.document_number}, status={self.status.value})>"


class DocumentAccessLog(BaseModel):
    __tablename__ = "document_access_logs"

    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    action: Mapped[DocumentAction] = mapped_column(
        Enum(DocumentAction, name="document_action"),
        nullable=False,
    )
