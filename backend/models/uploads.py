from sqlalchemy import Column, DateTime, ForeignKey, String, Enum, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import enum

class UploadStatus(str, enum.Enum):
    RECEIVING = "receiving"
    ASSEMBLING = "assembling"
    COMPLETED = "completed"
    ABORTED = "aborted"
    EXPIRED = "expired"

class Upload(Base):
    __tablename__ = "uploads"

    upload_id = Column(String, primary_key=True, index=True)
    file_type = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    total_chunks = Column(Integer, nullable=False)
    status = Column(Enum(UploadStatus), default=UploadStatus.RECEIVING, nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    asset = relationship("Asset", foreign_keys=[asset_id])
    chunks = relationship(
        "UploadChunk",
        back_populates="upload",
        cascade="all, delete-orphan",
        order_by="UploadChunk.chunk_index"
    )

    def __repr__(self):
        return f"Upload(upload_id={self.upload_id}, file_type={self.file_type}, file_name={self.file_name}, total_chunks={self.total_chunks}, status={self.status})"
