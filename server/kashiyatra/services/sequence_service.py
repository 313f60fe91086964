"""Named counter allocation backed by the sequences table."""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.sequence import Sequence

logger = logging.getLogger(__name__)

BOOKING_SEQUENCE = "booking"


class SequenceService:
    """Allocates values from named counters inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure(self, name: str) -> None:
        """Create the counter row for ``name`` if it does not exist yet."""
        existing = await self.db.get(Sequence, name)
        if existing is None:
            self.db.add(Sequence(name=name, value=0))
            await self.db.flush()
            logger.info("Sequence created", extra={"sequence": name})

    async def next_value(self, name: str) -> int:
        """
        Increment the counter and return its new value.

        The increment is a single UPDATE, so the row stays locked until the
        caller's transaction ends. Concurrent callers are serialized and no
        value is handed out twice; a rolled-back transaction does not consume
        its value.

        Args:
            name: Counter name

        Returns:
            The incremented counter value, starting at 1
        """
        stmt = (
            update(Sequence)
            .where(Sequence.name == name)
            .values(value=Sequence.value + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount == 0:
            # Counter was never seeded; the primary key rejects a concurrent duplicate
            self.db.add(Sequence(name=name, value=1))
            await self.db.flush()
            return 1

        value = await self.db.scalar(select(Sequence.value).where(Sequence.name == name))
        return int(value)
