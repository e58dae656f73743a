"""
Pydantic Schemas for customer CSV import.
"""
from typing import List, Optional

from pydantic import Field

from reviewpilot.schemas.review_requests import CamelModel, Customer


class CSVColumnMapping(CamelModel):
    """Customer field -> CSV header it is read from."""
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tags: Optional[str] = None
    last_visit_date: Optional[str] = None
    service_type: Optional[str] = None
    job_id: Optional[str] = None


class CSVRowError(CamelModel):
    row_index: int
    errors: List[str]


class CSVParseResult(CamelModel):
    customers: List[Customer] = Field(default_factory=list)
    errors: List[CSVRowError] = Field(default_factory=list)
    column_mapping: CSVColumnMapping = Field(default_factory=CSVColumnMapping)


class CSVImportRequest(CamelModel):
    csv_text: str
    column_mapping: Optional[CSVColumnMapping] = None
