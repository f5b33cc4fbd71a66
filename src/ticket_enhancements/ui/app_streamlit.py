"""
Streamlit inspector for ticket enhancement rules.

Features:
- Resolve markup and hospitality for a ticket context
- Step-by-step markup resolution trace
- Priced preview in any active display currency
- Browse the rule tables loaded by the engine
"""
import streamlit as st
import pandas as pd
import sys
from pathlib import Path
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from ticket_enhancements import __version__
from ticket_enhancements.config.settings import get_settings
from ticket_enhancements.currency.normalizer import CurrencyNormalizer
from ticket_enhancements.engine import ResolutionEngine, TicketContext
from ticket_enhancements.engine.rule_store import (
    MARKUP_RULES, HOSPITALITY_ASSIGNMENTS, TICKET_MARKUPS, TICKET_HOSPITALITIES,
)
from ticket_enhancements.errors import EnhancementError


st.set_page_config(
    page_title="Ticket Enhancements Inspector",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    return ResolutionEngine()


@st.cache_resource
def get_normalizer():
    """Get cached normalizer (keeps its rate cache between reruns)."""
    return CurrencyNormalizer(settings=get_settings())


try:
    engine = get_engine()
    normalizer = get_normalizer()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Ticket Context
# ============================================================================
with st.sidebar:
    st.header("🎟️ Ticket Context")

    with st.container(border=True):
        sport_type = st.text_input("Sport Type", value="soccer")
        tournament_id = st.text_input("Tournament ID", value="pl-2026")
        team_id = st.text_input("Team ID", value="ars", help="Leave empty for non-team sports")
        event_id = st.text_input("Event ID", value="ev-ars-che")
        ticket_id = st.text_input("Ticket ID", value="tk-ars-che-vip")

    st.divider()

    with st.container(border=True):
        currencies = engine.store.active_currencies()
        codes = [c['code'] for c in currencies] or ['USD']
        default = engine.store.default_currency()
        display_currency = st.selectbox(
            "Display Currency", options=codes,
            index=codes.index(default['code']) if default and default['code'] in codes else 0,
        )
        base_price = st.number_input(f"Base Price ({display_currency})", min_value=0.0, value=180.0, step=10.0)

    if st.button("🔄 Reload Rule Tables"):
        engine.reload_data()
        st.rerun()


# ============================================================================
# MAIN CONTENT
# ============================================================================
st.title("Ticket Enhancements Inspector")
st.caption(f"v{__version__} | Rule data: {engine.store.data_dir} | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2 = st.tabs(["⚡ Resolve", "📚 Rule Tables"])

with tab1:
    context = TicketContext(
        sport_type=sport_type,
        event_id=event_id,
        ticket_id=ticket_id,
        tournament_id=tournament_id or None,
        team_id=team_id or None,
    )

    try:
        markup = engine.resolve_markup(context)
        hospitalities = engine.resolve_hospitalities(context)
    except EnhancementError as e:
        st.error(f"❌ {e.message}")
        if e.details:
            st.json(e.details)
        st.stop()

    col1, col2 = st.columns([1.2, 1.8], gap="large")

    with col1:
        st.subheader("Markup")
        priced = normalizer.markup_in_currency(markup, base_price, display_currency)

        if markup:
            unit = "%" if markup.markup_type == "percentage" else " USD"
            st.markdown(f"**{markup.markup_amount:g}{unit}** at `{markup.level}` level ({markup.source})")
        else:
            st.info("No markup applies to this ticket")

        m1, m2 = st.columns(2)
        m1.metric("Markup", f"{priced.markup_amount:,.2f} {priced.markup_currency}")
        m2.metric("Final Price", f"{priced.final_price:,.2f} {priced.currency}")

        if not priced.has_conversion:
            st.warning("⚠️ Live exchange rate unavailable, markup shown in USD")

        if markup:
            with st.expander("🔍 Resolution Details", expanded=True):
                for t in markup.trace:
                    if t.value:
                        st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
                    else:
                        st.caption(f"**{t.step}**: {t.description}")

    with col2:
        st.subheader("Hospitality")
        if hospitalities:
            st.dataframe(
                pd.DataFrame([h.to_dict() for h in hospitalities]),
                use_container_width=True,
                hide_index=True,
            )
        else:
            st.info("No hospitality services apply to this ticket")


with tab2:
    table = st.radio(
        "Table",
        [MARKUP_RULES, HOSPITALITY_ASSIGNMENTS, TICKET_MARKUPS, TICKET_HOSPITALITIES],
        horizontal=True,
    )
    df = engine.store.table(table).drop(columns=['_active'], errors='ignore')
    st.dataframe(df, use_container_width=True, hide_index=True)

    with st.expander("📊 Stats"):
        st.json(engine.store.stats())
