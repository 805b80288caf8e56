"""
Geokodning av adresser till genereringscentrum
"""

import logging
import time
import requests
import streamlit as st
from typing import Optional

from config import NOMINATIM_BASE_URL, MAPBOX_BASE_URL, CACHE_TTL, REQUEST_TIMEOUT
from models import LatLon
from utils import validate_coordinates

logger = logging.getLogger(__name__)

USER_AGENT = "Segmentor/1.0"
NOMINATIM_MIN_INTERVAL = 1.0  # Nominatim tillåter ett anrop per sekund

_last_nominatim_call = 0.0


def _throttle_nominatim() -> None:
    global _last_nominatim_call
    wait = NOMINATIM_MIN_INTERVAL - (time.monotonic() - _last_nominatim_call)
    if wait > 0:
        time.sleep(wait)
    _last_nominatim_call = time.monotonic()


def _search_nominatim(address: str) -> Optional[LatLon]:
    _throttle_nominatim()
    response = requests.get(
        f"{NOMINATIM_BASE_URL}/search",
        params={"q": address, "format": "jsonv2", "limit": 1},
        headers={"User-Agent": USER_AGENT},
        timeout=REQUEST_TIMEOUT
    )
    if response.status_code != 200:
        logger.warning(f"Nominatim svarade {response.status_code} för '{address}'")
        return None

    hits = response.json()
    if not hits:
        return None
    return float(hits[0]["lat"]), float(hits[0]["lon"])


def _search_mapbox(address: str, token: str) -> Optional[LatLon]:
    response = requests.get(
        f"{MAPBOX_BASE_URL}/forward",
        params={"q": address, "access_token": token, "limit": 1},
        timeout=REQUEST_TIMEOUT
    )
    if response.status_code != 200:
        logger.warning(f"Mapbox svarade {response.status_code} för '{address}'")
        return None

    features = response.json().get("features") or []
    if not features:
        return None
    lon, lat = features[0]["geometry"]["coordinates"][:2]
    return lat, lon


@st.cache_data(ttl=CACHE_TTL)
def geocode_address(address: str, use_mapbox: bool = False) -> Optional[LatLon]:
    """
    Slå upp en adress som centrum för ruttgenerering

    Mapbox används bara när use_mapbox är satt och MAPBOX_TOKEN finns,
    annars Nominatim.

    Args:
        address: Fritext-adress
        use_mapbox: Föredra Mapbox

    Returns:
        (lat, lon), eller None om adressen inte hittas, tjänsten inte svarar
        eller svaret inte är giltiga koordinater
    """
    address = address.strip()
    if not address:
        return None

    try:
        if use_mapbox and "MAPBOX_TOKEN" in st.secrets:
            center = _search_mapbox(address, st.secrets["MAPBOX_TOKEN"])
        else:
            center = _search_nominatim(address)
    except requests.RequestException as e:
        logger.warning(f"Geokodningsfel för '{address}': {e}")
        return None

    if center is None or not validate_coordinates(*center):
        return None
    return center
