"""
Parsing helpers for request payloads.
Each helper raises ValidationError with a client-facing message.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation

from app.errors import ValidationError


def to_decimal(value, field='valor', default=None):
    """Best-effort conversion to Decimal. Accepts Decimal, int, float or str."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return Decimal(default)
        raise ValidationError(f'Campo "{field}" é obrigatório.')
    if isinstance(value, bool):
        raise ValidationError(f'Campo "{field}" deve ser numérico.')
    if isinstance(value, Decimal):
        return value
    try:
        result = Decimal(str(value).strip().replace(',', '.'))
    except InvalidOperation:
        raise ValidationError(f'Campo "{field}" deve ser numérico.')
    if not result.is_finite():
        raise ValidationError(f'Campo "{field}" deve ser numérico.')
    return result


def to_quantity(value, field='qtd'):
    """Positive whole number of units."""
    number = to_decimal(value, field)
    if number != number.to_integral_value():
        raise ValidationError(f'Campo "{field}" deve ser um número inteiro.')
    quantity = int(number)
    if quantity <= 0:
        raise ValidationError(f'Campo "{field}" deve ser maior que zero.')
    return quantity


def to_int(value, field='id'):
    if isinstance(value, bool):
        raise ValidationError(f'Campo "{field}" inválido.')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Campo "{field}" inválido.')


def to_text(value, field='texto'):
    """Stripped string; None becomes ''. Numbers, lists and objects are rejected."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f'Campo "{field}" deve ser um texto.')
    return value.strip()


def to_bool(value):
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {'1', 'true', 't', 'sim', 's', 'yes', 'y'}


def parse_datetime(value, field='data'):
    """Parse ISO-8601 date or datetime strings. Returns None for empty input."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f'Campo "{field}" tem formato de data inválido. Use ISO 8601 (YYYY-MM-DD ou YYYY-MM-DDTHH:MM).')
    if parsed.tzinfo is not None:
        # Stored as naive UTC
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    return parsed


def parse_date(value, field='data'):
    parsed = parse_datetime(value, field)
    return parsed.date() if parsed else None


def end_of_day(value):
    """Last instant of the given date/datetime."""
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, datetime.max.time())


__all__ = [
    'to_decimal', 'to_quantity', 'to_int', 'to_text', 'to_bool',
    'parse_datetime', 'parse_date', 'end_of_day',
]
