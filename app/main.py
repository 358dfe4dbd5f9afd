import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

from cobros.aggregates import summarize_by_month, yearly_stats, user_analysis
from cobros.config import Settings
from cobros.dates import display_date, effective_date_text, parse_date
from cobros.domain import Kind
from cobros.errors import NotFound, ValidationError
from cobros.events import (
    CHARGE_ADDED,
    CHARGE_DELETED,
    CHARGE_UPDATED,
    PERSISTENCE_WARNING,
    USER_ADDED,
    USER_DELETED,
    toast_handler,
)
from cobros.filters import by_kind
from cobros.formatting import (
    MONTH_ABBR,
    MONTH_NAMES,
    format_amount,
    format_rounded_amount,
    kind_label,
    month_title,
)
from cobros.lazy import iter_charges
from cobros.logging_setup import configure_logging, get_logger
from cobros.reports import export_filename, to_delimited_text, to_printable_document
from cobros.services import DashboardService, ReportService
from cobros.store import open_store

st.set_page_config(page_title="Sistema de Cobros", layout="wide")

settings = Settings.from_env()
configure_logging(settings.log_level)
logger = get_logger("cobros.app")


def _queue_toast(event, payload):
    note = toast_handler(event, payload)
    st.session_state.setdefault("toasts", []).append(note)
    return note


if "store" not in st.session_state:
    store = open_store(settings)
    for name in (USER_ADDED, USER_DELETED, CHARGE_ADDED, CHARGE_UPDATED, CHARGE_DELETED, PERSISTENCE_WARNING):
        store.bus.subscribe(name, _queue_toast)
    asyncio.run(store.load())
    logger.info("Dashboard started in %s mode", store.mode.value)
    st.session_state.store = store

store = st.session_state.store

for note in st.session_state.pop("toasts", []):
    st.toast(note["message"], icon="⚠️" if note["level"] == "warning" else "✅")


def run(coro):
    """Run a store mutation; validation problems become form errors."""
    try:
        return asyncio.run(coro)
    except (ValidationError, NotFound) as e:
        st.error(str(e))
        return None


def charges_frame(charges) -> pd.DataFrame:
    rows = [{
        "Fecha": display_date(effective_date_text(c)),
        "Usuario": c.user_name,
        "Tipo": kind_label(c.kind),
        "Monto": format_amount(c.amount),
        "Planilla": c.slip_number or "-",
        "Comprobante": c.voucher_number or "-",
        "Descripción": c.description or "-",
    } for c in charges]
    return pd.DataFrame(rows)


def user_options():
    return {u.id: u.name for u in store.users}


def document_fields(kind: Kind, prefix: str, current=None) -> dict:
    col1, col2 = st.columns(2)
    with col1:
        slip_number = st.text_input("N° Planilla", value=getattr(current, "slip_number", ""), key=f"{prefix}_slip_no")
        slip_date = st.date_input("Fecha Planilla", value=parse_date(getattr(current, "slip_date", "")) or date.today(), key=f"{prefix}_slip_date")
    fields = {"slip_number": slip_number, "slip_date": slip_date}
    if kind == Kind.VOUCHERED:
        with col2:
            fields["voucher_number"] = st.text_input("N° Comprobante", value=getattr(current, "voucher_number", ""), key=f"{prefix}_voucher_no")
            fields["voucher_date"] = st.date_input("Fecha Comprobante", value=parse_date(getattr(current, "voucher_date", "")) or date.today(), key=f"{prefix}_voucher_date")
    return fields


st.sidebar.markdown("### 💰 Sistema de Cobros")
st.sidebar.caption(f"Modo: **{store.mode.value}**")
menu = st.sidebar.radio("Menú", ["📊 Dashboard", "🧾 Cobros", "👥 Usuarios", "📑 Reportes"])

if menu == "📊 Dashboard":
    st.title("📊 Dashboard")
    years = sorted({d.year for d in (parse_date(effective_date_text(c)) for c in store.charges) if d} | {date.today().year}, reverse=True)
    col_y, col_m = st.columns(2)
    with col_y:
        year = st.selectbox("Año", years)
    with col_m:
        month_label = st.selectbox("Mes", ["Todos"] + list(MONTH_NAMES))
    month = None if month_label == "Todos" else MONTH_NAMES.index(month_label) + 1

    report = DashboardService().period_report(year, month, store.charges, store.users)
    result = report["result"]
    stats = result["stats"]

    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Total Cobros", format_amount(stats.total))
    k2.metric("Transacciones", stats.count)
    k3.metric("Usuarios Activos", stats.active_users)
    k4.metric("Promedio por Cobro", format_rounded_amount(stats.average))

    chart_col, share_col = st.columns([3, 2])
    with chart_col:
        monthly = summarize_by_month(store.charges, year)
        fig_month = px.line(
            x=list(MONTH_ABBR),
            y=[float(v) for v in monthly],
            markers=True,
            labels={"x": "Mes", "y": "Monto"},
            title=f"Cobros Mensuales {year}",
            template="plotly_dark",
        )
        st.plotly_chart(fig_month, use_container_width=True)
    with share_col:
        if result["top_users"]:
            fig_users = px.pie(
                names=[name for name, _ in result["top_users"]],
                values=[float(total) for _, total in result["top_users"]],
                hole=0.5,
                title="Top Usuarios",
                template="plotly_dark",
            )
            st.plotly_chart(fig_users, use_container_width=True)

    st.subheader("👤 Resumen por Usuario")
    summaries = result["user_summaries"]
    if summaries:
        st.table(pd.DataFrame([{
            "Usuario": s.name,
            "Tipo": kind_label(s.kind),
            "Transacciones": s.count,
            "Planillas": len(s.slip_numbers),
            "Comprobantes": len(s.voucher_numbers),
            "Total": format_amount(s.total),
            "Promedio": format_rounded_amount(s.average),
        } for s in summaries.values()]))
    else:
        st.info("No hay datos para mostrar")

    st.subheader("🕒 Actividad Reciente")
    if result["recent"]:
        st.table(charges_frame(result["recent"]))
    else:
        st.info("No hay actividad reciente")

    with st.expander("📈 Estadísticas por año"):
        st.table(pd.DataFrame([{
            "Año": y,
            "Total": format_amount(s.total),
            "Cobros": s.count,
            "Usuarios": s.distinct_user_count,
            "Promedio": format_rounded_amount(s.average),
        } for y, s in yearly_stats(store.charges).items()]))

elif menu == "🧾 Cobros":
    st.title("🧾 Cobros")
    options = user_options()

    st.subheader("➕ Registrar Cobro")
    if not options:
        st.info("Cree un usuario primero")
    else:
        user_id = st.selectbox("Usuario", list(options), format_func=options.get, key="new_user")
        owner = store.get_user(user_id).to_optional()
        with st.form("charge_form", clear_on_submit=True):
            amount = st.number_input("Monto", min_value=0.0, step=1000.0, format="%.2f")
            description = st.text_input("Descripción (opcional)")
            fields = document_fields(owner.kind, "new")
            if st.form_submit_button("Registrar Cobro"):
                data = {"user_id": user_id, "amount": str(amount), "description": description, **fields}
                if run(store.add_charge(data)):
                    st.rerun()

    st.divider()
    st.subheader("📋 Cobros Recientes")
    kind_filter = st.radio("Tipo", ["Todos", kind_label(Kind.PLAIN), kind_label(Kind.VOUCHERED)], horizontal=True)
    listed = store.charges
    if kind_filter != "Todos":
        kind = Kind.PLAIN if kind_filter == kind_label(Kind.PLAIN) else Kind.VOUCHERED
        listed = tuple(iter_charges(listed, by_kind(kind)))
    if listed:
        st.dataframe(charges_frame(listed), use_container_width=True, hide_index=True)
    else:
        st.info("No hay cobros registrados")

    if store.charges:
        st.subheader("✏️ Editar o eliminar")
        labels = {c.id: f"{c.user_name} · {format_amount(c.amount)} · {display_date(effective_date_text(c))}" for c in store.charges}
        charge_id = st.selectbox("Cobro", list(labels), format_func=labels.get)
        current = store.get_charge(charge_id).to_optional()
        edit_user = st.selectbox(
            "Usuario", list(options), format_func=options.get, key=f"edit_user_{charge_id}",
            index=list(options).index(current.user_id) if current.user_id in options else 0,
        ) if options else current.user_id
        edit_owner = store.get_user(edit_user).to_optional()
        with st.form("edit_form"):
            amount = st.number_input("Monto", min_value=0.0, value=float(current.amount), step=1000.0, format="%.2f")
            description = st.text_input("Descripción", value=current.description)
            fields = document_fields(edit_owner.kind if edit_owner else current.kind, f"edit_{charge_id}", current)
            save, delete = st.columns(2)
            if save.form_submit_button("Guardar cambios"):
                data = {"user_id": edit_user, "amount": str(amount), "description": description, **fields}
                if run(store.update_charge(charge_id, data)):
                    st.rerun()
            if delete.form_submit_button("Eliminar cobro"):
                run(store.delete_charge(charge_id))
                st.rerun()

elif menu == "👥 Usuarios":
    st.title("👥 Usuarios")
    with st.form("user_form", clear_on_submit=True):
        name = st.text_input("Nombre")
        kind_value = st.radio("Tipo", [Kind.PLAIN, Kind.VOUCHERED], format_func=kind_label, horizontal=True)
        if st.form_submit_button("Crear usuario"):
            if run(store.add_user({"name": name, "kind": kind_value})):
                st.rerun()

    if not store.users:
        st.info("No hay usuarios registrados")
    analysis = user_analysis(store.charges, store.users)
    for u in store.users:
        name_col, kind_col, total_col, action_col = st.columns([3, 2, 2, 1])
        name_col.markdown(f"**{u.name}**")
        kind_col.caption(kind_label(u.kind))
        total_col.markdown(format_amount(store.user_total(u.id)))
        if action_col.button("🗑", key=f"del_{u.id}", help="Eliminar usuario"):
            run(store.delete_user(u.id))
            st.rerun()
        detail = analysis.get(u.id)
        if detail:
            with st.expander(f"Detalle de {u.name}"):
                for y, breakdown in sorted(detail.years.items(), reverse=True):
                    st.markdown(f"**{y}** · {format_amount(breakdown.total)} · {breakdown.count} cobros")
                    st.bar_chart(pd.DataFrame({"Monto": [float(v) for v in breakdown.months]}, index=list(MONTH_ABBR)))

elif menu == "📑 Reportes":
    st.title("📑 Reportes")
    today = date.today()
    first_day = today.replace(day=1)
    options = {"": "Todos los usuarios", **user_options()}

    col_u, col_s, col_e = st.columns(3)
    with col_u:
        user_id = st.selectbox("Usuario", list(options), format_func=options.get)
    with col_s:
        start = st.date_input("Fecha inicio", value=first_day)
    with col_e:
        end = st.date_input("Fecha fin", value=today)

    report = ReportService().month_user_report(store.charges, store.users, user_id or None, start, end)
    if not report["count"]:
        st.info("No se encontraron resultados para los filtros seleccionados")
    else:
        c1, c2 = st.columns(2)
        c1.metric("Total del Reporte", format_amount(report["total"]))
        c2.metric("Total Transacciones", report["count"])

        for key, group in report["months"].items():
            st.markdown(
                f"### 📅 {month_title(key).capitalize()} · {format_amount(group.total)} · "
                f"{len(group.users)} usuarios · {group.total_count} cobros"
            )
            for bucket in group.users.values():
                with st.expander(f"{bucket.name} ({kind_label(bucket.kind)}) · {format_amount(bucket.total)} · {len(bucket.charges)} cobros"):
                    st.table(charges_frame([dc.charge for dc in bucket.charges]))

        d1, d2 = st.columns(2)
        d1.download_button(
            "⬇️ Exportar Excel (CSV)",
            to_delimited_text(report["charges"]).encode("utf-8"),
            file_name=export_filename(),
            mime="text/csv",
        )
        d2.download_button(
            "🖨 Exportar PDF (HTML para imprimir)",
            to_printable_document(report["charges"]).encode("utf-8"),
            file_name=export_filename().replace(".csv", ".html"),
            mime="text/html",
        )
