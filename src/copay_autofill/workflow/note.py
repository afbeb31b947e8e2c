"""Chart-note text and next-appointment summary."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Optional

from copay_autofill.models import Appointment, ExtractionResult

NO_APPOINTMENT = "No appointment found"

APPOINTMENT_TYPES = (
    "ESTABLISHED",
    "PHYSICAL",
    "MEDICARE WELLNESS VISIT",
    "ER FU",
    "HOSPITAL FU",
    "NEW PATIENT",
)

# Applied in order; the specific phrases must run before PATIENT.
_TYPE_ABBREVIATIONS = (
    (re.compile(r"MEDICARE WELLNESS VISIT", re.IGNORECASE), "MWV"),
    (re.compile(r"HOSPITAL FU", re.IGNORECASE), "Hosp FU"),
    (re.compile(r"PHYSICAL EXAM", re.IGNORECASE), "PE"),
    (re.compile(r"OVER 40", re.IGNORECASE), ">40"),
    (re.compile(r"NEW PATIENT", re.IGNORECASE), "New Pt"),
    (re.compile(r"ESTABLISHED", re.IGNORECASE), "Est"),
    (re.compile(r"PATIENT", re.IGNORECASE), "Pt"),
)

_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_BALANCE = re.compile(r"\$\d+(?:,\d{3})*(?:\.\d{2})?")


def shorten_appointment_type(appointment_type: str) -> str:
    short = appointment_type
    for pattern, abbreviation in _TYPE_ABBREVIATIONS:
        short = pattern.sub(abbreviation, short)
    return short


def _appointment_date(text: str) -> Optional[date]:
    match = _DATE.search(text)
    if not match:
        return None
    month, day, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def summarize_next_appointment(appointments: Iterable[Appointment], today: date) -> str:
    """``"<when> - <short type> - <resource>"`` for the earliest qualifying visit.

    Only visit types in :data:`APPOINTMENT_TYPES` count, and visits dated
    before *today* are ignored. Ties on the same day keep the first row.
    """
    best: Optional[Appointment] = None
    best_date: Optional[date] = None
    for appt in appointments:
        kind = appt.appointment_type.upper()
        if not any(t in kind for t in APPOINTMENT_TYPES):
            continue
        when = _appointment_date(appt.starts_at_text)
        if when is None or when < today:
            continue
        if best_date is None or when < best_date:
            best, best_date = appt, when

    if best is None:
        return NO_APPOINTMENT
    short = shorten_appointment_type(best.appointment_type.strip())
    return f"{best.starts_at_text.strip()} - {short} - {best.resource.strip()}"


def extract_balance(value: Optional[str], default: str = "$0.00") -> str:
    """First dollar amount in a labeled page value, else *default*."""
    if not value:
        return default
    match = _BALANCE.search(value)
    return match.group(0) if match else default


def format_note(
    result: Optional[ExtractionResult],
    balance: str,
    next_appointment: str,
    verified_on: date | datetime,
) -> str:
    """Alert text recorded on the patient chart."""
    result = result or ExtractionResult()
    pc = f"${result.primary_copay}" if result.primary_copay else "N/A"
    pci = f"{result.primary_coinsurance}%" if result.primary_coinsurance else "N/A"
    uc = f"${result.urgent_copay}" if result.urgent_copay else "N/A"
    uci = f"{result.urgent_coinsurance}%" if result.urgent_coinsurance else "N/A"
    return (
        f"PRIMARY CARE  | Copay: {pc} | Coinsurance: {pci}\n"
        f"URGENT CARE   | Copay: {uc} | Coinsurance: {uci}\n"
        f"\n"
        f"Patient Balance: {balance or 'N/A'}\n"
        f"\n"
        f"Next Appt: {next_appointment or NO_APPOINTMENT}\n"
        f"\n"
        f"        ** Insurance verified: {verified_on.strftime('%m/%d/%Y')} **"
    )
