"""Streamlit workspace for the solar EV charging station simulator."""

from __future__ import annotations

import logging
from datetime import datetime

import streamlit as st

from frontend.ui.charts import build_energy_distribution_chart, build_energy_flow_chart, build_soc_chart
from frontend.ui.forms import render_simulation_form
from frontend.ui.metrics import compute_kpis, render_primary_metrics, render_snapshot_metrics
from frontend.ui.pdf import build_pdf_summary
from frontend.ui.rendering import render_hourly_table, render_recommendations
from services.simulation_core import InvalidParameter, SimulationParameters, SimulationResult, run_simulation
from services.station_snapshot import compute_station_snapshot
from utils.rate_limit import apply_rate_limit_password, enforce_rate_limit
from utils.report import (
    build_hourly_workbook,
    build_report_csv,
    build_report_json,
    build_report_payload,
    hourly_frame,
)

logger = logging.getLogger(__name__)

RESULT_SESSION_KEY = "latest_simulation_result"
PARAMS_SESSION_KEY = "latest_simulation_params"


def _render_downloads(params: SimulationParameters, result: SimulationResult) -> None:
    payload = build_report_payload(params, result, compute_station_snapshot(params), generated_at=datetime.now())
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    c1, c2, c3, c4 = st.columns(4)
    c1.download_button(
        "Report (CSV)",
        build_report_csv(payload),
        file_name=f"EMS_Report_{stamp}.csv",
        mime="text/csv",
        use_container_width=True,
    )
    c2.download_button(
        "Report (JSON)",
        build_report_json(payload),
        file_name=f"EMS_Report_{stamp}.json",
        mime="application/json",
        use_container_width=True,
    )
    c3.download_button(
        "Hourly data (XLSX)",
        build_hourly_workbook(result),
        file_name=f"EMS_Hourly_{stamp}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True,
    )
    c4.download_button(
        "Summary (PDF)",
        build_pdf_summary(params, result),
        file_name=f"EMS_Summary_{stamp}.pdf",
        mime="application/pdf",
        use_container_width=True,
    )


def _render_results(params: SimulationParameters, result: SimulationResult) -> None:
    st.subheader(f"{result.duration}-hour simulation ({result.strategy} dispatch)")
    render_primary_metrics(compute_kpis(result))

    st.markdown("#### Hourly energy flow")
    st.altair_chart(build_energy_flow_chart(result), use_container_width=True)
    soc_col, dist_col = st.columns([2, 1])
    with soc_col:
        st.markdown("#### Battery state of charge")
        st.altair_chart(build_soc_chart(result), use_container_width=True)
    with dist_col:
        st.markdown("#### Energy distribution")
        st.altair_chart(build_energy_distribution_chart(result), use_container_width=True)

    st.markdown("#### Recommendations")
    render_recommendations(result.recommendations)

    with st.expander("Hourly table", expanded=False):
        render_hourly_table(hourly_frame(result))

    st.markdown("#### Downloads")
    _render_downloads(params, result)


def run_app():
    st.set_page_config(page_title="EV Solar Station Lab", layout="wide")
    st.title("EV Solar Station Lab (PV + battery + grid)")

    with st.expander("Help & Guide (click to open)", expanded=False):
        st.markdown("""
    ### How to get started
    1) Set irradiance, temperature, cloud cover and the station sizing in the sidebar.
    2) (Optional) Upload an hourly CSV/Excel file. Recognised columns are
       `irradiance`/`solar_irradiance`/`GHI`, `temperature`, `cloud_cover` and
       `ev_demand`/`demand`/`consumption`; row N applies to hour N.
    3) Choose the dispatch mode and press **Run simulation**.

    ### Helpful notes
    - Battery SOC is held between 10 % and 95 % after every hour.
    - Demand that neither the battery nor the grid can cover is left unserved; it still
      counts toward total energy consumed.
    - The daylight arc uses a 24-hour period unless you tick the stretch option.
    """)

    form = render_simulation_form()

    with st.sidebar:
        st.divider()
        password = st.text_input("Remove rate limit (password)", type="password")
        if apply_rate_limit_password(password):
            st.caption("Rate limit disabled for this session.")
        elif password:
            st.error("Incorrect password. Rate limit still active.")

    for message in form.validation_errors:
        st.error(message)

    if form.is_valid and form.params is not None:
        st.markdown("#### Station snapshot (configured conditions)")
        render_snapshot_metrics(compute_station_snapshot(form.params))

    if form.run_submitted and form.is_valid and form.params is not None:
        enforce_rate_limit()
        try:
            result = run_simulation(form.params)
        except InvalidParameter as exc:
            st.error(f"Simulation rejected: {exc}")
            st.stop()
        logger.info("Simulation finished: %s h, strategy=%s", result.duration, result.strategy)
        st.session_state[PARAMS_SESSION_KEY] = form.params
        st.session_state[RESULT_SESSION_KEY] = result

    result = st.session_state.get(RESULT_SESSION_KEY)
    params = st.session_state.get(PARAMS_SESSION_KEY)
    if result is None or params is None:
        st.info("Configure the station in the sidebar and run a simulation to see results.")
        return

    _render_results(params, result)


if __name__ == "__main__":
    run_app()
