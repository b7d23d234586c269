"""
Deduplicator - keep the first N records with distinct question text
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Union

from .decoding import normalize
from .models import RawRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Insufficient:
    """Input ran out before enough unique questions were found"""
    found: int
    required: int


def dedupe_take(records: Sequence[RawRecord],
                required: int) -> Union[List[RawRecord], Insufficient]:
    """Return the first ``required`` records whose normalized question has
    not been seen earlier in ``records``, in first-seen order.
    
    Scanning stops as soon as enough records are collected.
    """
    if required <= 0:
        return []
    
    seen = set()
    kept: List[RawRecord] = []
    for record in records:
        key = normalize(record.question)
        if key in seen:
            logger.debug(f"Dropping duplicate question: {record.question[:60]}")
            continue
        seen.add(key)
        kept.append(record)
        if len(kept) == required:
            return kept
    
    return Insufficient(found=len(kept), required=required)
