"""Named sequence counter model."""

from sqlalchemy import Column, Integer, String

from . import Base


class Counter(Base):
    """Monotonic counter backing human-readable business identifiers."""

    __tablename__ = "counter"

    name = Column(String(64), primary_key=True)
    seq = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Counter(name='{self.name}', seq={self.seq})>"
