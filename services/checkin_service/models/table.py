from typing import Any, Optional

from libs.db.base import Base
from sqlalchemy import JSON, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

ITEMS_TABLE = "checkin_items"


class TableItem(Base):
    """One row of the single logical key-value table.

    Key columns are real columns so they can be indexed; every other attribute
    of the record lives in ``attrs`` under its short stored name.
    """

    __tablename__ = ITEMS_TABLE

    pk: Mapped[str] = mapped_column(String, primary_key=True)
    sk: Mapped[str] = mapped_column(String, primary_key=True)
    t: Mapped[str] = mapped_column(String, nullable=False, index=True)

    gsi1pk: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gsi1sk: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gsi2pk: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gsi2sk: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gsi3pk: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    gsi3sk: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    attrs: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )

    __table_args__ = (
        Index("ix_checkin_items_gsi1", "gsi1pk", "gsi1sk"),
        Index("ix_checkin_items_gsi2", "gsi2pk", "gsi2sk"),
        Index("ix_checkin_items_gsi3", "gsi3pk", "gsi3sk"),
    )

    def to_item(self) -> dict[str, Any]:
        """Flatten the row into the stored record shape."""
        return {**(self.attrs or {}), "pk": self.pk, "sk": self.sk, "t": self.t}

    def __repr__(self):
        return f"<TableItem {self.pk} {self.sk}>"
