"""Region model — accounts are attached to a region at registration."""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from market_api.db.base import Base


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)

    accounts = relationship("Account", back_populates="region")

    def __repr__(self):
        return f"<Region(id={self.id}, name='{self.name}')>"
