"""Semicolon CSV for resident import/export and the delivery report"""
import csv
import io
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from entregas_zap.domain.adapters import normalize_resident_fields
from entregas_zap.domain.clock import format_date, format_time, to_local
from entregas_zap.domain.entities import Delivery, DeliveryStatus, Employee, Resident

RESIDENT_HEADER = ("name", "apartment", "block", "phone", "building")
HEADER_MARKERS = ("name", "nome")

DELIVERY_REPORT_HEADER = (
    "Código",
    "Morador",
    "Apto/Bloco",
    "Funcionário",
    "Status",
    "Data Entrega",
    "Data Retirada",
    "Retirado Por",
)

STATUS_LABELS = {
    DeliveryStatus.PENDING: "Pendente",
    DeliveryStatus.PICKED_UP: "Retirada",
    DeliveryStatus.CANCELLED: "Cancelada",
}

EXAMPLE_RESIDENTS = (
    ("João Silva", "101", "A", "(11) 99999-1111", "Edifício Gran"),
    ("Maria Santos", "102", "A", "(11) 99999-2222", "Edifício Gran"),
    ("Pedro Oliveira", "201", "B", "(11) 99999-3333", "Residencial Teste"),
)


@dataclass
class ResidentRow:
    name: str
    apt: str
    block: str
    phone: str
    condo: str


@dataclass
class ResidentImport:
    rows: List[ResidentRow] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)  # 1-based line numbers


def _write(rows: Iterable[Iterable[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def export_residents(residents: Iterable[Resident]) -> str:
    return _write(
        [RESIDENT_HEADER]
        + [(r.name, r.apt, r.block, r.phone, r.condo) for r in residents]
    )


def example_residents_csv() -> str:
    return _write([RESIDENT_HEADER, *EXAMPLE_RESIDENTS])


def parse_residents(text: str) -> ResidentImport:
    """Parse an uploaded resident sheet.

    Blank lines are ignored. The first line is treated as a header when it
    mentions "name" or "nome" anywhere. Lines missing any of the five fields
    are skipped and reported. Accepted rows come back normalized.
    """
    result = ResidentImport()
    lines = [
        (number, line)
        for number, line in enumerate(text.replace("\r\n", "\n").split("\n"), start=1)
        if line.strip()
    ]
    if not lines:
        return result

    first_line = lines[0][1].lower()
    if any(marker in first_line for marker in HEADER_MARKERS):
        lines = lines[1:]

    for number, line in lines:
        cells = next(csv.reader([line], delimiter=";"))
        cells = [cell.strip() for cell in cells]
        if len(cells) < 5 or not all(cells[:5]):
            result.skipped.append(number)
            continue

        name, apt, block, phone, condo = cells[:5]
        normalized = normalize_resident_fields(name, apt, block, condo)
        result.rows.append(ResidentRow(phone=phone, **normalized))

    return result


def _report_row(
    delivery: Delivery,
    resident: Optional[Resident],
    employee: Optional[Employee],
) -> List[str]:
    received = to_local(delivery.received_at)
    picked_up = to_local(delivery.picked_up_at) if delivery.picked_up_at else None
    return [
        delivery.code,
        resident.name if resident else "N/A",
        f"{resident.apt if resident else 'N/A'} / {(resident.block if resident else '') or 'N/A'}",
        employee.name if employee else "N/A",
        STATUS_LABELS[delivery.status],
        f"{format_date(received)} {format_time(received)}",
        f"{format_date(picked_up)} {format_time(picked_up)}" if picked_up else "",
        delivery.picked_up_by or "",
    ]


def export_delivery_report(
    deliveries: Iterable[Delivery],
    residents: Iterable[Resident],
    employees: Iterable[Employee],
) -> str:
    residents_by_id = {r.id: r for r in residents}
    employees_by_id = {e.id: e for e in employees}
    return _write(
        [DELIVERY_REPORT_HEADER]
        + [
            _report_row(d, residents_by_id.get(d.resident_id), employees_by_id.get(d.employee_id))
            for d in deliveries
        ]
    )
