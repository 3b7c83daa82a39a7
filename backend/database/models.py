from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.base import Base


class Subject(Base):
    __tablename__ = "subjects"

    code = Column(String, primary_key=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    resources = relationship(
        "Resource",
        back_populates="subject",
        order_by="Resource.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Subject code={self.code}>"


class Resource(Base):
    __tablename__ = "resources"

    id = Column(String, primary_key=True)
    subject_code = Column(
        String, ForeignKey("subjects.code", ondelete="CASCADE"), primary_key=True
    )
    title = Column(String, nullable=False)
    remote_path = Column(String, nullable=False)  # resources/<subject>/<resource>
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    subject = relationship("Subject", back_populates="resources")
    sections = relationship(
        "CatalogSection",
        back_populates="resource",
        order_by="CatalogSection.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Resource id={self.id} subject_code={self.subject_code} title={self.title}>"


class CatalogSection(Base):
    __tablename__ = "sections"

    id = Column(String, primary_key=True)
    resource_id = Column(String, primary_key=True)
    subject_code = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    checksum = Column(String(64), nullable=False)  # sha256 of the published PDF
    url = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    resource = relationship("Resource", back_populates="sections")

    __table_args__ = (
        ForeignKeyConstraint(
            ["resource_id", "subject_code"],
            ["resources.id", "resources.subject_code"],
            ondelete="CASCADE",
        ),
        Index("ix_sections_resource", "subject_code", "resource_id"),
    )

    def __repr__(self):
        return f"<CatalogSection id={self.id} resource_id={self.resource_id} checksum={self.checksum}>"


class CatalogMetadata(Base):
    __tablename__ = "catalog_metadata"

    id = Column(Integer, primary_key=True, default=1)
    checksum = Column(String(64), nullable=True)  # sha256 of the serialized catalog
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
