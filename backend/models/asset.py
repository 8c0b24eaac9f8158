from sqlalchemy import Column, String, BigInteger, Integer, DateTime
from sqlalchemy.sql import func
from database import Base


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    public_id = Column(String, nullable=False, unique=True, index=True)
    url = Column(String, nullable=False)
    folder = Column(String, nullable=False)
    resource_type = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    size = Column(BigInteger, nullable=False)
    upload_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"Asset(id={self.id}, public_id={self.public_id}, url={self.url}, folder={self.folder}, resource_type={self.resource_type}, size={self.size})"
