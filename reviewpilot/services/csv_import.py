"""
Customer CSV import and export.

Parsing is tolerant: headers are matched by keyword, phone numbers lose their
formatting, and each bad row is reported with its reasons instead of failing
the whole file.
"""
import csv
import io
import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from reviewpilot.core.ids import IdFactory, uuid4_ids
from reviewpilot.core.logging import get_logger
from reviewpilot.schemas.customer_import import CSVColumnMapping, CSVParseResult, CSVRowError
from reviewpilot.schemas.review_requests import Customer

logger = get_logger(__name__)

EXPORT_HEADERS = ["customerName", "phone", "email", "tags", "lastVisitDate", "serviceType", "jobId"]

# Checked per header in this order; the first header matching a field claims it.
_HEADER_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("customer_name", ("customername", "name", "customer")),
    ("phone", ("phone", "mobile", "cell")),
    ("email", ("email",)),
    ("tags", ("tag", "label", "category")),
    ("last_visit_date", ("lastvisitdate", "lastvisit", "visitdate", "lastservicedate")),
    ("service_type", ("servicetype", "service", "jobtype")),
    ("job_id", ("jobid", "job", "workorder", "invoice")),
)

_PHONE_FORMATTING = re.compile(r"[\s\-().]")
_PHONE_DIGITS = re.compile(r"^\d{10,}$")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%m-%d-%Y", "%b %d, %Y", "%B %d, %Y", "%d %b %Y", "%d %B %Y")


def _normalize_header(header: str) -> str:
    return re.sub(r"[^a-z0-9]", "", header.strip().lower())


def detect_column_mapping(headers: Sequence[str]) -> CSVColumnMapping:
    mapping: Dict[str, str] = {}
    for header in headers:
        normalized = _normalize_header(header)
        for field, keywords in _HEADER_KEYWORDS:
            if field not in mapping and any(k in normalized for k in keywords):
                mapping[field] = header
    return CSVColumnMapping(**mapping)


def parse_phone(value: str) -> Optional[str]:
    cleaned = _PHONE_FORMATTING.sub("", value.strip())
    return cleaned if _PHONE_DIGITS.match(cleaned) else None


def parse_email(value: str) -> Optional[str]:
    trimmed = value.strip().lower()
    return trimmed if _EMAIL.match(trimmed) else None


def parse_date(value: str) -> Optional[datetime]:
    """Calendar date at midnight, or None if the value is not a recognisable date."""
    trimmed = value.strip()
    try:
        parsed = datetime.fromisoformat(trimmed.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(trimmed, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    return datetime(parsed.year, parsed.month, parsed.day)


def parse_tags(value: str) -> List[str]:
    return [tag.strip() for tag in re.split(r"[,;]", value) if tag.strip()]


def parse_customers_csv(
    csv_text: str,
    now: datetime,
    column_mapping: Optional[CSVColumnMapping] = None,
    id_factory: IdFactory = uuid4_ids,
    max_rows: Optional[int] = None,
) -> CSVParseResult:
    """
    Parse customer rows out of CSV text.

    Row indexes in errors count the header as row 0. Rows without a name, with
    an unparseable phone/email/date, or with neither phone nor email are
    reported and left out of `customers`.
    """
    lines = [line.strip() for line in csv_text.split("\n") if line.strip()]
    if len(lines) < 2:
        return CSVParseResult(
            errors=[CSVRowError(row_index=0, errors=["CSV must have at least a header row and one data row"])],
        )

    rows = list(csv.reader(lines))
    headers = [h.strip() for h in rows[0]]
    mapping = column_mapping or detect_column_mapping(headers)

    if not mapping.customer_name:
        return CSVParseResult(
            errors=[CSVRowError(row_index=0, errors=["Missing required columns: customerName"])],
            column_mapping=mapping,
        )

    customers: List[Customer] = []
    errors: List[CSVRowError] = []

    data_rows = rows[1:]
    if max_rows is not None and len(data_rows) > max_rows:
        errors.append(CSVRowError(
            row_index=max_rows + 1,
            errors=[f"Row limit of {max_rows} exceeded; {len(data_rows) - max_rows} rows ignored"],
        ))
        data_rows = data_rows[:max_rows]

    for row_index, row in enumerate(data_rows, start=1):
        def value_of(field: str) -> str:
            header = getattr(mapping, field)
            if not header or header not in headers:
                return ""
            position = headers.index(header)
            return row[position].strip() if position < len(row) else ""

        row_errors: List[str] = []

        customer_name = value_of("customer_name")
        if not customer_name:
            row_errors.append("Customer name is required")

        phone_value = value_of("phone")
        phone = parse_phone(phone_value) if phone_value else None
        if phone_value and not phone:
            row_errors.append(f'Invalid phone number: "{phone_value}"')

        email_value = value_of("email")
        email = parse_email(email_value) if email_value else None
        if email_value and not email:
            row_errors.append(f'Invalid email: "{email_value}"')

        visit_value = value_of("last_visit_date")
        last_visit_date = parse_date(visit_value) if visit_value else None
        if visit_value and not last_visit_date:
            row_errors.append(f'Invalid last visit date: "{visit_value}"')

        if row_errors:
            errors.append(CSVRowError(row_index=row_index, errors=row_errors))
            continue

        if not phone and not email:
            errors.append(CSVRowError(row_index=row_index, errors=["At least phone or email must be provided"]))
            continue

        tags_value = value_of("tags")
        customers.append(Customer(
            id=id_factory(),
            customer_name=customer_name,
            phone=phone,
            email=email,
            tags=parse_tags(tags_value) if tags_value else [],
            last_visit_date=last_visit_date,
            service_type=value_of("service_type") or None,
            job_id=value_of("job_id") or None,
            opted_out=False,
            created_at=now,
        ))

    logger.info(f"Parsed customer CSV: {len(customers)} accepted, {len(errors)} rejected")
    return CSVParseResult(customers=customers, errors=errors, column_mapping=mapping)


def generate_csv_template() -> str:
    return "\n".join([
        ",".join(EXPORT_HEADERS),
        'John Doe,5551234567,john@example.com,"VIP,Regular",2024-01-15,Plumbing,JO-12345',
        "Jane Smith,5559876543,jane@example.com,Regular,2024-01-20,Electrical,JO-12346",
        'Bob Johnson,,bob@example.com,"New Customer",2024-01-25,HVAC,JO-12347',
    ])


def export_customers_csv(customers: Sequence[Customer]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for customer in customers:
        writer.writerow([
            customer.customer_name,
            customer.phone or "",
            customer.email or "",
            ",".join(customer.tags),
            customer.last_visit_date.date().isoformat() if customer.last_visit_date else "",
            customer.service_type or "",
            customer.job_id or "",
        ])
    return output.getvalue().rstrip("\n")
