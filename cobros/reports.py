"""Export formats for a list of charges.

``to_delimited_text`` keeps the spreadsheet export format unchanged from the
existing files users already open in Excel: UTF-8 BOM, comma separated, every
field wrapped in double quotes and nothing escaped inside them.
"""

from datetime import date, datetime
from decimal import Decimal
from html import escape
from typing import Iterable, Optional, Sequence

from cobros.dates import display_date, effective_date_text, format_display, format_iso
from cobros.domain import Charge
from cobros.formatting import format_amount, kind_label

BOM = "\ufeff"

EXPORT_HEADERS = (
    "Fecha",
    "Usuario",
    "Tipo",
    "Monto",
    "Descripción",
    "N° Planilla",
    "Fecha Planilla",
    "N° Comprobante",
    "Fecha Comprobante",
)


def export_row(c: Charge) -> tuple:
    return (
        display_date(effective_date_text(c)),
        c.user_name,
        kind_label(c.kind),
        format_amount(c.amount),
        c.description or "",
        c.slip_number or "",
        display_date(c.slip_date),
        c.voucher_number or "",
        display_date(c.voucher_date),
    )


def _quoted(row: Sequence[str]) -> str:
    return ",".join(f'"{field}"' for field in row)


def to_delimited_text(charges: Iterable[Charge]) -> str:
    rows = [EXPORT_HEADERS] + [export_row(c) for c in charges]
    return BOM + "\n".join(_quoted(row) for row in rows)


def export_filename(today: Optional[date] = None) -> str:
    return f"cobros_{format_iso(today or date.today())}.csv"


_PRINT_STYLE = """
        body { font-family: Arial, sans-serif; margin: 20px; font-size: 12px; }
        h1 { color: #2c3e50; text-align: center; margin-bottom: 30px; }
        .info { text-align: center; margin-bottom: 20px; color: #7f8c8d; }
        table { width: 100%; border-collapse: collapse; margin-top: 20px; }
        th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
        th { background-color: #3498db; color: white; font-weight: bold; }
        tr:nth-child(even) { background-color: #f2f2f2; }
        .total { margin-top: 20px; text-align: right; font-weight: bold; font-size: 14px; }
        @media print { body { margin: 0; } .no-print { display: none; } }
"""


def to_printable_document(charges: Iterable[Charge], generated_at: Optional[datetime] = None) -> str:
    """Standalone HTML report meant to be printed or saved as PDF from a browser."""
    charges = tuple(charges)
    generated_at = generated_at or datetime.now()
    total = sum((c.amount for c in charges), Decimal("0"))

    head = "".join(f"<th>{escape(h)}</th>" for h in EXPORT_HEADERS)
    body = "\n".join(
        "<tr>" + "".join(f"<td>{escape(str(v))}</td>" for v in export_row(c)) + "</tr>"
        for c in charges
    )
    stamp = f"{format_display(generated_at.date())} a las {generated_at.strftime('%H:%M:%S')}"

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Reporte de Cobros</title>
    <style>{_PRINT_STYLE}    </style>
</head>
<body>
    <h1>Reporte de Cobros</h1>
    <div class="info">Generado el: {stamp}</div>
    <table>
        <thead><tr>{head}</tr></thead>
        <tbody>
{body}
        </tbody>
    </table>
    <div class="total">
        Total de registros: {len(charges)}<br>
        Monto total: {escape(format_amount(total))}
    </div>
</body>
</html>
"""
