"""Calendar views derived from an already-fetched reservation list"""

import calendar
import csv
import io
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.services.clock import local_date, to_local


@dataclass
class DayCounts:
    midi: int = 0
    soir: int = 0

    @property
    def total(self) -> int:
        return self.midi + self.soir


def aggregate_by_day(
    reservations: Iterable[Reservation],
    month: Tuple[int, int],
    tz_name: str,
    include_canceled: bool = True,
) -> Dict[str, DayCounts]:
    """Count reservations per local day and service for one month

    Every day of the month gets an entry, zero when empty. Canceled
    reservations count unless ``include_canceled`` is False.
    """
    year, month_number = month
    days_in_month = calendar.monthrange(year, month_number)[1]
    grouped = {
        date(year, month_number, day).isoformat(): DayCounts()
        for day in range(1, days_in_month + 1)
    }

    for reservation in reservations:
        if not include_canceled and reservation.status == ReservationStatus.CANCELED:
            continue
        key = local_date(reservation.date_time_start, tz_name).isoformat()
        counts = grouped.get(key)
        if counts is None:
            continue
        if reservation.service_type == ServiceType.MIDI:
            counts.midi += 1
        else:
            counts.soir += 1

    return grouped


def reservations_for_day(
    reservations: Iterable[Reservation],
    day: date,
    tz_name: str,
    service_type: Optional[ServiceType] = None,
    status: Optional[ReservationStatus] = None,
    search: Optional[str] = None,
) -> List[Reservation]:
    """Day drill-down with the back-office filters"""
    query = search.strip().lower() if search else None
    selected = []
    for reservation in reservations:
        if local_date(reservation.date_time_start, tz_name) != day:
            continue
        if service_type is not None and reservation.service_type != service_type:
            continue
        if status is not None and reservation.status != status:
            continue
        if query and not _matches(reservation, query):
            continue
        selected.append(reservation)
    return sorted(selected, key=lambda r: r.date_time_start)


def _matches(reservation: Reservation, query: str) -> bool:
    return any(
        query in (value or "").lower()
        for value in (reservation.first_name, reservation.last_name, reservation.phone, reservation.email)
    )


CSV_HEADERS = [
    "Date", "Time", "Service", "Last name", "First name", "Phone", "Email",
    "Guests", "Status", "Tables", "Comment",
]


def export_csv(
    reservations: Iterable[Reservation],
    table_names: Mapping[UUID, str],
    tz_name: str,
) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(CSV_HEADERS)
    for reservation in reservations:
        start = to_local(reservation.date_time_start, tz_name)
        tables = " + ".join(
            table_names.get(UUID(str(table_id)), str(table_id)) for table_id in reservation.table_ids or []
        )
        writer.writerow([
            start.strftime("%d/%m/%Y"),
            start.strftime("%H:%M"),
            reservation.service_type.value,
            reservation.last_name,
            reservation.first_name,
            reservation.phone,
            reservation.email or "",
            reservation.guests_count,
            reservation.status.value,
            tables,
            reservation.comment or "",
        ])
    return buffer.getvalue()
