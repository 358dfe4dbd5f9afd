from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from cobros.domain import Kind

Number = Union[Decimal, int, float, str]

KIND_LABELS = {
    Kind.PLAIN: "Solo Planilla",
    Kind.VOUCHERED: "Planilla y Comprobante",
}

MONTH_NAMES = (
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
)
MONTH_ABBR = tuple(name[:3] for name in MONTH_NAMES)


def kind_label(kind: Kind) -> str:
    return KIND_LABELS.get(kind, KIND_LABELS[Kind.PLAIN])


def format_number(value: Number) -> str:
    """Colombian grouping: ``1234567.5`` -> ``1.234.567,5`` (at most 3 decimals)."""
    q = Decimal(str(value)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    sign = "-" if q < 0 else ""
    int_part, _, frac = f"{abs(q):f}".partition(".")
    frac = frac.rstrip("0")
    grouped = f"{int(int_part):,}".replace(",", ".")
    return sign + grouped + ("," + frac if frac else "")


def format_amount(value: Number) -> str:
    return "$" + format_number(value)


def format_rounded_amount(value: Number) -> str:
    return format_amount(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def month_title(key: str) -> str:
    """``"2024-03"`` -> ``"marzo de 2024"``."""
    year, month = key.split("-")
    return f"{MONTH_NAMES[int(month) - 1].lower()} de {int(year)}"
