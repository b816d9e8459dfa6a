from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON, UniqueConstraint

from jobboard.database import Base


class StoredItem(Base):
    """
    One key of a browser's local storage.

    Items are scoped by namespace (the browser's portal cookie), so two
    browsers talking to the same portal never see each other's session.
    """
    __tablename__ = "stored_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(64), nullable=False, index=True)
    key = Column(String(64), nullable=False)
    value = Column(JSON, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('namespace', 'key', name='uq_namespace_key'),
    )
