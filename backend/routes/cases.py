"""
Withdrawal Support - Cases Router

Batch disposition of waiting withdrawal cases and document lookups.
"""

from fastapi import APIRouter, HTTPException
from typing import List, Optional
from pydantic import BaseModel, Field
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cases", tags=["cases"])

# Services - set by main app
batch_runner = None
mrt_scanner = None
data_entry_lookup = None
email_scanner = None

def set_dependencies(runner, scanner, lookup, email=None):
    global batch_runner, mrt_scanner, data_entry_lookup, email_scanner
    batch_runner = runner
    mrt_scanner = scanner
    data_entry_lookup = lookup
    email_scanner = email


# ==================== MODELS ====================

class DocumentNumbersRequest(BaseModel):
    document_numbers: Optional[List[str]] = Field(default_factory=list)

    def cleaned(self) -> List[str]:
        return [n.strip() for n in self.document_numbers or [] if n and n.strip()]


def _require_document_numbers(request: DocumentNumbersRequest) -> List[str]:
    numbers = request.cleaned()
    if not numbers:
        raise HTTPException(status_code=400, detail="No document numbers provided")
    return numbers


# ==================== DISPOSITION ENDPOINTS ====================

@router.post("/process-dataentry-waiting")
async def process_dataentry_waiting():
    """Dispose every case waiting at the data-entry event."""
    logger.info("Received request to process data entry waiting cases")
    result = await batch_runner.run()
    return result.to_dict()


@router.post("/process-documents")
async def process_documents(request: DocumentNumbersRequest):
    """Dispose the cases owning the given document numbers."""
    numbers = _require_document_numbers(request)
    logger.info("Received request to process %d document number(s)", len(numbers))
    try:
        result = await batch_runner.run_for_documents(numbers)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@router.post("/process-mrt-waiting")
async def process_mrt_waiting():
    """List documents at MRT / approval events whose tasks are all complete."""
    logger.info("Received request to process MRT waiting cases")
    result = await mrt_scanner.run()
    return result.to_dict()


@router.post("/process-email-waiting")
async def process_email_waiting():
    """Sort cases waiting at the email resolution activity into buckets."""
    logger.info("Received request to process email waiting cases")
    result = await email_scanner.run()
    return result.to_dict()


# ==================== DATA ENTRY TASK LOOKUPS ====================

@router.post("/data-entry-tasks/present")
async def documents_with_data_entry_task(request: DocumentNumbersRequest):
    numbers = _require_document_numbers(request)
    found = await data_entry_lookup.with_data_entry_task(numbers)
    return {"document_numbers": found, "count": len(found)}


@router.post("/data-entry-tasks/absent")
async def documents_without_data_entry_task(request: DocumentNumbersRequest):
    numbers = _require_document_numbers(request)
    missing = await data_entry_lookup.without_data_entry_task(numbers)
    return {"document_numbers": missing, "count": len(missing)}


@router.get("/health")
async def health():
    return {"status": "Service is running"}
