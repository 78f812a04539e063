"""Dashboard figures, delivery report filters and resident grouping

Everything here works on the session's entity lists; nothing hits the
backend. Day boundaries are taken in the building timezone.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from entregas_zap.domain.clock import to_local
from entregas_zap.domain.entities import Delivery, DeliveryStatus, Employee, Resident


class DashboardStats(BaseModel):
    active_employees: int
    total_employees: int
    active_residents: int
    total_residents: int
    deliveries_today: int
    delivery_growth: int  # today minus yesterday
    deliveries_pending: int
    picked_up_today: int
    pending_change_today: int
    deliveries_this_month: int
    deliveries_last_month: int
    monthly_growth: float  # percent
    pickup_rate: float  # percent, all time
    pickup_rate_growth: float  # last 7 days vs the 7 before, in points


def _received_day(delivery: Delivery) -> date:
    return to_local(delivery.received_at).date()


def _rate(deliveries: List[Delivery]) -> float:
    if not deliveries:
        return 0.0
    picked_up = sum(1 for d in deliveries if d.status == DeliveryStatus.PICKED_UP)
    return picked_up / len(deliveries) * 100


def dashboard_stats(
    deliveries: List[Delivery],
    residents: List[Resident],
    employees: List[Employee],
    now: datetime,
) -> DashboardStats:
    today = now.date()
    yesterday = today - timedelta(days=1)
    start_of_month = today.replace(day=1)
    start_of_last_month = (start_of_month - timedelta(days=1)).replace(day=1)
    seven_days_ago = today - timedelta(days=6)
    fourteen_days_ago = seven_days_ago - timedelta(days=7)

    received = [(d, _received_day(d)) for d in deliveries]

    today_count = sum(1 for _, day in received if day == today)
    yesterday_count = sum(1 for _, day in received if day == yesterday)
    picked_up_today = sum(
        1 for d in deliveries
        if d.picked_up_at is not None and to_local(d.picked_up_at).date() == today
    )
    this_month = sum(1 for _, day in received if day >= start_of_month)
    last_month = sum(1 for _, day in received if start_of_last_month <= day < start_of_month)

    if last_month:
        monthly_growth = (this_month - last_month) / last_month * 100
    else:
        monthly_growth = 100.0 if this_month else 0.0

    last_7 = [d for d, day in received if day >= seven_days_ago]
    previous_7 = [d for d, day in received if fourteen_days_ago <= day < seven_days_ago]

    return DashboardStats(
        active_employees=sum(1 for e in employees if e.active),
        total_employees=len(employees),
        active_residents=sum(1 for r in residents if r.active),
        total_residents=len(residents),
        deliveries_today=today_count,
        delivery_growth=today_count - yesterday_count,
        deliveries_pending=sum(1 for d in deliveries if d.status == DeliveryStatus.PENDING),
        picked_up_today=picked_up_today,
        pending_change_today=picked_up_today - today_count,
        deliveries_this_month=this_month,
        deliveries_last_month=last_month,
        monthly_growth=monthly_growth,
        pickup_rate=_rate(deliveries),
        pickup_rate_growth=_rate(last_7) - _rate(previous_7),
    )


def filter_deliveries(
    deliveries: Iterable[Delivery],
    residents: Iterable[Resident],
    employees: Iterable[Employee],
    search: Optional[str] = None,
    status: Optional[DeliveryStatus] = None,
    employee_id: Optional[int] = None,
    resident_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Delivery]:
    """Delivery report filters; dates are inclusive local days"""
    residents_by_id = {r.id: r for r in residents}
    employees_by_id = {e.id: e for e in employees}
    needle = (search or "").strip().lower()

    result = []
    for delivery in deliveries:
        if needle:
            resident = residents_by_id.get(delivery.resident_id)
            employee = employees_by_id.get(delivery.employee_id)
            haystack = [delivery.code, resident.name if resident else "", employee.name if employee else ""]
            if not any(needle in value.lower() for value in haystack):
                continue
        if status is not None and delivery.status != status:
            continue
        if employee_id is not None and delivery.employee_id != employee_id:
            continue
        if resident_id is not None and delivery.resident_id != resident_id:
            continue
        day = _received_day(delivery)
        if start_date is not None and day < start_date:
            continue
        if end_date is not None and day > end_date:
            continue
        result.append(delivery)

    return result


def group_residents(residents: Iterable[Resident]) -> Dict[str, Dict[str, List[Resident]]]:
    """block -> apartment -> residents, sorted; residents without a block go under "" """
    grouped: Dict[str, Dict[str, List[Resident]]] = defaultdict(lambda: defaultdict(list))
    for resident in residents:
        grouped[resident.block][resident.apt].append(resident)

    return {
        block: {
            apt: sorted(grouped[block][apt], key=lambda r: r.name)
            for apt in sorted(grouped[block], key=_apartment_key)
        }
        for block in sorted(grouped)
    }


def _apartment_key(apt: str):
    # "101" < "1203" numerically; non-numeric apartments sort after, by text
    return (0, int(apt), apt) if apt.isdigit() else (1, 0, apt)
