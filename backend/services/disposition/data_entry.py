"""
Withdrawal Support - Data Entry Task Lookup

Splits a list of document numbers by whether the case-instance store holds a
"Data entry" task for them.
"""

import logging
from typing import Iterable, List

from .collaborators import CaseInstanceStore
from .reconciler import DATA_ENTRY_TASK_NAME

logger = logging.getLogger(__name__)


def _unique(document_numbers: Iterable[str]) -> List[str]:
    ordered: List[str] = []
    for number in document_numbers or []:
        if number and number not in ordered:
            ordered.append(number)
    return ordered


class DataEntryTaskLookup:

    def __init__(self, store: CaseInstanceStore):
        self.store = store

    async def with_data_entry_task(self, document_numbers: Iterable[str]) -> List[str]:
        requested = _unique(document_numbers)
        logger.info("Extracting documents with '%s' task from %d document numbers", DATA_ENTRY_TASK_NAME, len(requested))
        if not requested:
            return []

        records = await self.store.find_by_document_identifiers_and_task_name(requested, DATA_ENTRY_TASK_NAME)
        present = {identifier for record in records for identifier in record.identifiers}
        matched = [number for number in requested if number in present]

        logger.info("Found %d documents with '%s' task out of %d", len(matched), DATA_ENTRY_TASK_NAME, len(requested))
        return matched

    async def without_data_entry_task(self, document_numbers: Iterable[str]) -> List[str]:
        requested = _unique(document_numbers)
        present = set(await self.with_data_entry_task(requested))
        missing = [number for number in requested if number not in present]
        logger.info("Found %d documents without '%s' task", len(missing), DATA_ENTRY_TASK_NAME)
        return missing
