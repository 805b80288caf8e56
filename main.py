"""
Huvudapplikation för Segmentor: generera rutter och tävla på dem
"""

import asyncio
import logging
import streamlit as st
from streamlit_folium import st_folium

from config import (
    CITY_PRESETS,
    DEFAULT_CENTER,
    DEFAULT_ROUTE_COUNT,
    DEFAULT_RADIUS_KM,
    DEFAULT_MIN_DISTANCE_KM,
    DEFAULT_MAX_DISTANCE_KM,
    TICK_INTERVAL
)
from backend import BackendError, SupabaseBackend
from geocoding import geocode_address
from geolocation import GpxReplaySource, ManualLocationSource
from map_utils import create_generation_map, create_race_map
from models import PositionFix, RaceTarget, RouteGenerationParams
from race import RaceStatus
from race_timer import RaceTimer
from route_generator import RouteGenerator
from routing import RoadSnapper, get_directions_service
from utils import calculate_bearing, create_gpx, format_time, get_compass_direction, validate_coordinates

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

TOAST_ICONS = {"success": "🏁", "info": "⏱️", "warning": "⚠️", "error": "❌"}


class FragmentTicker:
    """Tick som drivs av ett Streamlit-fragment med run_every"""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.running = False

    def start(self):
        self.running = True

    def stop(self):
        self.running = False


def notify(level: str, message: str) -> None:
    st.toast(message, icon=TOAST_ICONS.get(level))


def init_session_state():
    """Initiera session state"""
    if "center" not in st.session_state:
        st.session_state.center = tuple(DEFAULT_CENTER)
    if "generated_routes" not in st.session_state:
        st.session_state.generated_routes = []
    if "user_id" not in st.session_state:
        st.session_state.user_id = ""
    if "last_address" not in st.session_state:
        st.session_state.last_address = ""
    if "race_timer" not in st.session_state:
        st.session_state.race_timer = None
    if "location_source" not in st.session_state:
        st.session_state.location_source = None
    if "replay_ticks" not in st.session_state:
        st.session_state.replay_ticks = 0


def get_backend():
    return SupabaseBackend.from_secrets()


def close_race():
    """Släpp tick och GPS-prenumeration för pågående lopp"""
    timer = st.session_state.race_timer
    if timer is not None:
        timer.close()
    st.session_state.race_timer = None
    st.session_state.location_source = None


def generate_page():
    with st.sidebar:
        st.header("Genereringsområde")

        preset = st.selectbox("Stad", ["(egen)"] + list(CITY_PRESETS), key="city_preset")
        if preset != "(egen)" and st.session_state.get("last_preset") != preset:
            st.session_state.center = CITY_PRESETS[preset]
        st.session_state.last_preset = preset

        address = st.text_input("Adress", placeholder="T.ex. Kungsgatan 1, Stockholm", key="center_address")
        if address and address != st.session_state.last_address:
            with st.spinner("Söker adress..."):
                coords = geocode_address(address)
                if coords:
                    st.session_state.center = coords
                    st.session_state.last_address = address
                    st.success("Centrum hittat")
                else:
                    st.error("Kunde inte hitta adressen")

        radius = st.slider("Radie (km)", 1.0, 25.0, DEFAULT_RADIUS_KM, 0.5)

        st.divider()
        st.header("Rutter")
        count = st.number_input("Antal", min_value=1, max_value=20, value=DEFAULT_ROUTE_COUNT)
        min_distance, max_distance = st.slider(
            "Distans (km)", 0.5, 30.0, (DEFAULT_MIN_DISTANCE_KM, DEFAULT_MAX_DISTANCE_KM), 0.5
        )
        follow_roads = st.toggle("Följ vägar", value=True,
                                 help="Av: fågelvägen mellan punkterna, kräver ingen vägtjänst")
        mode = st.selectbox(
            "Färdsätt",
            ["driving", "cycling", "walking"],
            format_func=lambda x: {"driving": "Bil", "cycling": "Cykel", "walking": "Till fots"}[x],
            disabled=not follow_roads
        )

        generate_button = st.button("Generera rutter", type="primary", use_container_width=True)

    if generate_button:
        params = RouteGenerationParams(
            count=int(count),
            center_lat=st.session_state.center[0],
            center_lng=st.session_state.center[1],
            radius_km=radius,
            min_distance_km=min_distance,
            max_distance_km=max_distance
        )
        if follow_roads:
            service = get_directions_service(mode=mode)
            if service is None:
                st.error("Ingen API-nyckel konfigurerad för GraphHopper eller ORS!")
            else:
                with st.spinner("Genererar rutter längs vägnätet..."):
                    generator = RouteGenerator(RoadSnapper(service))
                    st.session_state.generated_routes = asyncio.run(generator.generate_routes(params))
        else:
            st.session_state.generated_routes = RouteGenerator(None).generate_straight_routes(params)

        found = len(st.session_state.generated_routes)
        if found < params.count:
            st.warning(f"Hittade {found} av {params.count} rutter inom distansintervallet.")

    col1, col2 = st.columns([2, 1])

    with col1:
        st.subheader("Karta")
        m = create_generation_map(st.session_state.center, radius, st.session_state.generated_routes)
        map_data = st_folium(m, key="generation_map", width=None, height=500)
        clicked = (map_data or {}).get("last_clicked")
        # st_folium returnerar senaste klicket vid varje körning
        if clicked and clicked != st.session_state.get("last_click"):
            st.session_state.last_click = clicked
            if validate_coordinates(clicked["lat"], clicked["lng"]):
                st.session_state.center = (clicked["lat"], clicked["lng"])
                st.rerun()
        st.caption("Klicka i kartan för att flytta genereringscentrum.")

    with col2:
        st.subheader("Genererade rutter")
        routes = st.session_state.generated_routes
        if not routes:
            st.info("Generera rutter för att se dem här")
            return

        for i, route in enumerate(routes):
            with st.expander(f"{route.name} · {route.distance:.2f} km"):
                st.write(route.description)
                st.metric("Uppskattad tid", format_time(route.estimated_time / 60))
                st.caption(f"{route.difficulty_level} · {', '.join(route.tags)}")
                st.download_button(
                    "Ladda ner GPX",
                    data=create_gpx(route),
                    file_name=f"{route.name.replace(' ', '_')}.gpx",
                    mime="application/gpx+xml",
                    key=f"gpx_{i}"
                )

        st.divider()
        if st.button("Spara alla rutter", use_container_width=True):
            backend = get_backend()
            if backend is None or not st.session_state.user_id:
                st.error("Ange användar-id och konfigurera Supabase för att spara.")
            else:
                try:
                    backend.insert_routes(routes, st.session_state.user_id)
                    st.success(f"Sparade {len(routes)} rutter")
                except BackendError as e:
                    st.error(f"Kunde inte spara rutterna: {e}")


def load_race_target(route_ref: str):
    """Hämta rutt från backend, eller från genererade rutter i sessionen"""
    if route_ref.startswith("generated:"):
        route = st.session_state.generated_routes[int(route_ref.split(":", 1)[1])]
        return RaceTarget(route_id=None, start=route.start, end=route.end,
                          distance_km=route.distance, name=route.name,
                          description=route.description, difficulty_level=route.difficulty_level)

    backend = get_backend()
    if backend is None:
        st.error("Supabase är inte konfigurerat")
        return None
    try:
        return RaceTarget.from_row(backend.fetch_route(route_ref))
    except BackendError as e:
        st.error(f"Kunde inte ladda rutten: {e}")
        return None


def start_race(target: RaceTarget, gpx_file=None):
    close_race()
    if gpx_file is not None:
        source = GpxReplaySource(gpx_file.getvalue().decode("utf-8"))
    else:
        source = ManualLocationSource()
    st.session_state.location_source = source
    st.session_state.race_timer = RaceTimer(
        target,
        source,
        backend=get_backend(),
        user_id=st.session_state.user_id or None,
        ticker_factory=FragmentTicker,
        notify=notify
    )


@st.fragment(run_every=TICK_INTERVAL)
def race_status():
    timer = st.session_state.race_timer
    if timer is None:
        return
    status_before = timer.status

    source = st.session_state.location_source
    if isinstance(source, GpxReplaySource) and st.session_state.get("gpx_autoplay") and not source.finished:
        st.session_state.replay_ticks += 1
        if st.session_state.replay_ticks % 10 == 0:
            source.step()

    if timer.ticking:
        timer.tick()

    session = timer.session
    if session.status is not RaceStatus.IDLE:
        st.markdown(f"## `{timer.elapsed_display}`")
        st.progress(session.progress / 100)
        st.caption(f"{session.progress:.1f}% klart")

    col1, col2 = st.columns(2)
    to_start = f"{session.distance_to_start * 1000:.0f} m" if session.distance_to_start is not None else "--"
    to_finish = f"{session.distance_to_finish * 1000:.0f} m" if session.distance_to_finish is not None else "--"
    col1.metric("Till start", to_start)
    col2.metric("Till mål", to_finish)
    col1.metric("Fart", f"{session.current_speed:.1f} km/h")
    col2.metric("Maxfart", f"{session.max_speed:.1f} km/h")

    if session.position is not None:
        bearing = calculate_bearing(session.position.as_tuple(), session.target.end)
        st.caption(f"Mål åt {get_compass_direction(bearing)}")

    if timer.waiting_for_gps:
        st.caption("Väntar på GPS-position...")
    if timer.last_error is not None:
        st.warning(f"GPS-fel: {timer.last_error.message}")

    if timer.status is not status_before:
        st.rerun()


def race_page():
    with st.sidebar:
        st.header("Välj rutt")
        options = [f"generated:{i}" for i in range(len(st.session_state.generated_routes))]
        labels = {f"generated:{i}": r.name for i, r in enumerate(st.session_state.generated_routes)}
        choice = st.selectbox("Genererad rutt", ["(ingen)"] + options, format_func=lambda x: labels.get(x, x))
        route_id = st.text_input("Eller rutt-id från backend")
        gpx_file = st.file_uploader("Spela upp GPX-spår (valfritt)", type=["gpx"])

        if st.button("Ladda rutt", type="primary", use_container_width=True):
            ref = route_id.strip() or (choice if choice != "(ingen)" else "")
            if not ref:
                st.error("Välj en rutt först!")
            else:
                target = load_race_target(ref)
                if target:
                    start_race(target, gpx_file)

    timer = st.session_state.race_timer
    if timer is None:
        st.info("Ladda en rutt för att börja tävla")
        return

    target = timer.session.target
    st.subheader(target.name or "Lopp")
    if target.description:
        st.write(target.description)

    col1, col2 = st.columns([2, 1])

    with col1:
        m = create_race_map(target, timer.session.position)
        map_data = st_folium(m, key="race_map", width=None, height=500)
        source = st.session_state.location_source
        clicked = (map_data or {}).get("last_clicked")
        if isinstance(source, ManualLocationSource):
            st.caption("Klicka i kartan för att uppdatera din position.")
            last = source.current_position()
            if clicked and (last is None or (clicked["lat"], clicked["lng"]) != last.as_tuple()):
                source.publish(PositionFix(clicked["lat"], clicked["lng"]))
                st.rerun()
        elif isinstance(source, GpxReplaySource):
            st.toggle("Spela upp GPX", key="gpx_autoplay")
            if st.button("Nästa punkt", disabled=source.finished):
                source.step()
                st.rerun()

    with col2:
        race_status()

        if not timer.session.is_racing:
            if st.button("Starta lopp", type="primary", use_container_width=True,
                         disabled=timer.waiting_for_gps):
                timer.start()
                st.rerun()
        else:
            c1, c2 = st.columns(2)
            paused = timer.status is RaceStatus.PAUSED
            if c1.button("Fortsätt" if paused else "Pausa", use_container_width=True):
                timer.toggle_pause()
                st.rerun()
            if c2.button("Stoppa", use_container_width=True):
                timer.stop()
                st.rerun()

        if timer.session.result is not None:
            result = timer.session.result
            st.success(f"Sluttid {timer.elapsed_display}")
            if result.average_speed is not None:
                st.metric("Snittfart", f"{result.average_speed:.1f} km/h")

        if target.route_id:
            backend = get_backend()
            if backend is not None:
                try:
                    leaderboard = backend.fetch_leaderboard(target.route_id)
                except BackendError as e:
                    st.warning(f"Topplistan kunde inte laddas: {e}")
                    leaderboard = []
                if leaderboard:
                    st.subheader("Topplista")
                    st.dataframe(
                        [
                            {"Tid": format_time(row["completion_time"] / 60),
                             "Snittfart": row.get("average_speed")}
                            for row in leaderboard
                        ],
                        hide_index=True
                    )


def main():
    """Huvudfunktion för Streamlit-appen"""
    st.set_page_config(
        page_title="Segmentor",
        page_icon="🏁",
        layout="wide"
    )

    init_session_state()

    st.title("Segmentor")

    with st.sidebar:
        st.text_input("Användar-id", key="user_id")
        page = st.radio("Vy", ["generate", "race"],
                        format_func=lambda x: "Generera rutter" if x == "generate" else "Tävla")
        st.divider()

    if page == "generate":
        # Lämnar man loppvyn ska tick och GPS släppas
        close_race()
        generate_page()
    else:
        race_page()


if __name__ == "__main__":
    main()
