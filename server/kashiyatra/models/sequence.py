"""Named counter model used to allocate booking identifiers."""

from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class Sequence(Base):
    """A monotonically increasing counter, one row per name."""

    __tablename__ = "sequences"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_sequence_value_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Sequence(name='{self.name}', value={self.value})>"
