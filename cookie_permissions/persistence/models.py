"""SQLAlchemy model for stored cookie policies.

The table layout is the durable on-disk contract shared with existing
database files, so it is declared as a plain table (no surrogate key) and
mapped with ``domain`` as the identity.
"""

from sqlalchemy import Column, Index, Integer, Table, Text

from .database import Base


policies_table = Table(
    "policies",
    Base.metadata,
    Column("domain", Text),
    Column("value", Integer),
    Index("domain", "domain", unique=True),
)


class Policy(Base):
    """Decision stored for one domain pattern."""

    __table__ = policies_table
    __mapper_args__ = {"primary_key": [policies_table.c.domain]}

    def __repr__(self) -> str:
        return f"<Policy(domain='{self.domain}', value={self.value})>"
