# backoffice/core/months.py

import re
from datetime import date, datetime

from backoffice.core.exceptions import InvalidInputError

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

def parse_month(value: str | date) -> date:
    """
    Normaliza uma referência de mês para o primeiro dia do mês.
    Aceita 'YYYY-MM', 'YYYY-MM-DD' ou datetime ISO. Não converte fuso:
    '2024-05-31T23:00:00-03:00' continua sendo maio.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, 1)
    if isinstance(value, date):
        return date(value.year, value.month, 1)

    raw = str(value).strip()
    match = _YEAR_MONTH_RE.match(raw)
    try:
        if match:
            return date(int(match.group(1)), int(match.group(2)), 1)
        parsed = datetime.fromisoformat(raw) if "T" in raw else datetime.strptime(raw, "%Y-%m-%d")
    except ValueError as e:
        raise InvalidInputError(f"Formato de mês inválido: '{raw}'. Use YYYY-MM ou YYYY-MM-DD.") from e
    return date(parsed.year, parsed.month, 1)

def previous_month(month: date) -> date:
    """Primeiro dia do mês anterior, em termos de calendário."""
    if month.month == 1:
        return date(month.year - 1, 12, 1)
    return date(month.year, month.month - 1, 1)

def month_key(month: date) -> str:
    return month.isoformat()
