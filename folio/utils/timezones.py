# folio/utils/timezones.py
# Conversión hora local (zona IANA del sitio) <-> instantes UTC para programación
from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

# Formato del input "datetime-local" del formulario de programación
LOCAL_FORMAT = "%Y-%m-%dT%H:%M"
_ACCEPTED_FORMATS = (LOCAL_FORMAT, "%Y-%m-%dT%H:%M:%S")

FALLBACK_TIMEZONES = [
    "UTC",
    "America/New_York",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
    "America/Mexico_City",
    "America/Sao_Paulo",
    "Europe/London",
    "Europe/Paris",
    "Europe/Berlin",
    "Europe/Madrid",
    "Asia/Tokyo",
    "Asia/Singapore",
    "Asia/Kolkata",
    "Australia/Sydney",
]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Asegura que el datetime sea timezone-aware en UTC.
    - Si viene naive (p.ej. SQLite), se asume UTC (no desplaza).
    - Si viene con tz, se convierte a UTC con astimezone.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 en UTC con sufijo Z (formato de metadata/payloads)."""
    dt = as_utc(dt)
    if dt is None:
        return None
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@lru_cache(maxsize=1)
def _timezone_list() -> tuple[str, ...]:
    try:
        zones = available_timezones()
    except (OSError, ValueError):
        zones = set()
    return tuple(sorted(set(zones) | set(FALLBACK_TIMEZONES)))


def list_timezones() -> List[str]:
    return list(_timezone_list())


def is_valid_timezone(name: Optional[str]) -> bool:
    if not name or not isinstance(name, str):
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def _zone(name: str) -> ZoneInfo:
    if not is_valid_timezone(name):
        raise ValueError(f"Unknown time zone: {name!r}")
    return ZoneInfo(name)


def local_to_utc(value: str, tz_name: str) -> datetime:
    """
    Convierte una hora de pared "YYYY-MM-DDTHH:MM" en la zona `tz_name` a UTC.

    - Formato inválido o zona desconocida -> ValueError.
    - Horas inexistentes (salto de DST) -> ValueError.
    - Horas ambiguas (fin de DST) -> primera ocurrencia (fold=0).
    """
    raw = (value or "").strip()
    naive: Optional[datetime] = None
    for fmt in _ACCEPTED_FORMATS:
        try:
            naive = datetime.strptime(raw, fmt)
            break
        except ValueError:
            continue
    if naive is None:
        raise ValueError(f"Invalid local time: {value!r}")

    zone = _zone(tz_name)
    local = naive.replace(tzinfo=zone, fold=0)
    utc = local.astimezone(timezone.utc)

    # Un wall-time que cae en el hueco de DST no sobrevive el viaje de ida y vuelta
    if utc.astimezone(zone).replace(tzinfo=None) != naive:
        raise ValueError(f"{raw} does not exist in {tz_name}")
    return utc


def utc_to_local(dt: datetime, tz_name: str) -> datetime:
    return as_utc(dt).astimezone(_zone(tz_name))


def format_local(dt: datetime, tz_name: str) -> str:
    """Inverso de local_to_utc: instante UTC -> "YYYY-MM-DDTHH:MM" en la zona."""
    return utc_to_local(dt, tz_name).strftime(LOCAL_FORMAT)
