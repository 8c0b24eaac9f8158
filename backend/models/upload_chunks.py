from sqlalchemy import Column, ForeignKey, Integer, String, DateTime, LargeBinary
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database import Base

class UploadChunk(Base):
    __tablename__ = "upload_chunks"

    upload_id = Column(String, ForeignKey("uploads.upload_id"), primary_key=True, nullable=False)
    chunk_index = Column(Integer, primary_key=True, nullable=False)
    data = Column(LargeBinary, nullable=False)
    size = Column(Integer, nullable=False)
    checksum = Column(String(32), nullable=False)
    received_at = Column(DateTime(timezone=True), server_default=func.now())

    upload = relationship("Upload", back_populates="chunks")

    def __repr__(self):
        return f"UploadChunk(upload_id={self.upload_id}, chunk_index={self.chunk_index}, size={self.size}, checksum={self.checksum})"
