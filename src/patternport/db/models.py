import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, declarative_base

# Define the Base HERE, within the models.py file.
Base: type[DeclarativeBase] = declarative_base()


class BlockPattern(Base):
    __tablename__ = "block_patterns"
    id = Column(Integer, primary_key=True, index=True)
    created = Column(DateTime, default=datetime.datetime.utcnow, index=True)
    last_updated = Column(
        DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow
    )
    slug = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="publish", index=True)
    description = Column(Text, nullable=False, default="")
    categories = Column(JSON, nullable=False, default=list)
    keywords = Column(JSON, nullable=False, default=list)
    viewport_width = Column(Integer, nullable=False, default=1280)
    block_types = Column(JSON, nullable=False, default=list)
    post_types = Column(JSON, nullable=False, default=list)
    template_types = Column(JSON, nullable=False, default=list)
    inserter = Column(Boolean, nullable=False, default=True)
    content = Column(Text, nullable=False, default="")
