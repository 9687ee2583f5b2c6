"""Generated-but-unsaved analysis records awaiting a storage retry.

Bounded in size; the oldest entry is evicted first. Process-local, so a
restart drops pending records.
"""

import logging
import uuid
from collections import OrderedDict

from app.analysis.types import AnalysisRecord
from app.core.config import settings

logger = logging.getLogger(__name__)


class PendingRecords:
    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self._records: OrderedDict[str, AnalysisRecord] = OrderedDict()

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: AnalysisRecord) -> str:
        pending_id = uuid.uuid4().hex
        self.restore(pending_id, record)
        return pending_id

    def get(self, pending_id: str, owner_id: str) -> AnalysisRecord | None:
        """Record for ``pending_id`` if it belongs to ``owner_id``."""
        record = self._records.get(pending_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record

    def claim(self, pending_id: str, owner_id: str) -> AnalysisRecord | None:
        """Remove and return the record, so only one caller can save it.

        Hand it back with ``restore`` if the save fails.
        """
        record = self.get(pending_id, owner_id)
        if record is not None:
            del self._records[pending_id]
        return record

    def restore(self, pending_id: str, record: AnalysisRecord) -> None:
        self._records[pending_id] = record
        while len(self._records) > self.max_size:
            evicted_id, evicted = self._records.popitem(last=False)
            logger.warning("Pending record %s evicted (owner=%s, file=%s)", evicted_id, evicted.owner_id, evicted.file_name)


pending_records = PendingRecords(max_size=settings.pending_records_max)


def get_pending_records() -> PendingRecords:
    """FastAPI dependency."""
    return pending_records
