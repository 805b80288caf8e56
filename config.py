"""
Konfiguration och konstanter för Segmentor (ruttgenerering och racetidtagning)
"""

# Standardvärden
DEFAULT_CENTER = [59.3293, 18.0686]  # Stockholm
DEFAULT_ROUTE_COUNT = 5
DEFAULT_RADIUS_KM = 5.0
DEFAULT_MIN_DISTANCE_KM = 2.0
DEFAULT_MAX_DISTANCE_KM = 8.0
DEFAULT_TRAVEL_MODE = "driving"

# API URLs
ORS_BASE_URL = "https://api.openrouteservice.org"
GRAPHHOPPER_BASE_URL = "https://graphhopper.com/api/1"
NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"
MAPBOX_BASE_URL = "https://api.mapbox.com/geocoding/v6"
REQUEST_TIMEOUT = 30

# Profilnamn per färdsätt
ORS_PROFILES = {"driving": "driving-car", "cycling": "cycling-regular", "walking": "foot-walking"}
GRAPHHOPPER_PROFILES = {"driving": "car", "cycling": "bike", "walking": "foot"}

# Geometri
KM_PER_DEGREE = 111.0
EARTH_RADIUS_KM = 6371.0
SNAP_OFFSET_DEGREES = 0.001

# Ruttgenerering
MAX_GENERATION_ATTEMPTS = 10
MAX_END_POINT_ATTEMPTS = 8
MAX_STRAIGHT_ATTEMPTS = 20
MAX_STRAIGHT_END_POINT_ATTEMPTS = 50
STRAIGHT_SECONDS_PER_KM = 300
STRAIGHT_TIME_JITTER_SECONDS = 300
AVOID_HIGHWAYS_THRESHOLD = 0.7  # ~30% av anropen
AVOID_TOLLS_THRESHOLD = 0.8  # ~20% av anropen

EASY_MAX_KM = 3.0
MEDIUM_MAX_KM = 7.0
SPRINT_MAX_KM = 2.0
ENDURANCE_MIN_KM = 8.0

ROUTE_PREFIXES = [
    "Urban Sprint", "City Circuit", "Downtown Dash", "Metro Loop", "Central Run",
    "Riverside Route", "Parkland Path", "Scenic Circuit", "Harbor Loop", "Bridge Run",
    "Hill Climb", "Valley Sprint", "Mountain Circuit", "Coastal Path", "Forest Loop",
]

ROUTE_SUFFIXES = [
    "Challenge", "Circuit", "Express", "Classic", "Adventure",
    "Tour", "Trail", "Path", "Route", "Loop",
]

ROUTE_DESCRIPTIONS = [
    "A {difficulty} {distance:.1f}km route perfect for testing your speed and endurance on real roads.",
    "Experience this {distance:.1f}km {difficulty} circuit designed for competitive road racing.",
    "Challenge yourself on this {distance:.1f}km {difficulty} route following actual street paths.",
    "A carefully crafted {distance:.1f}km {difficulty} road course for serious racers.",
    "Navigate this {distance:.1f}km {difficulty} route featuring real-world driving challenges.",
]

THEME_TAGS = ["urban", "scenic", "training", "competitive"]

# Snabbval för genereringscentrum
CITY_PRESETS = {
    "Stockholm": (59.3293, 18.0686),
    "New York": (40.7128, -74.0060),
    "Los Angeles": (34.0522, -118.2437),
    "Chicago": (41.8781, -87.6298),
    "London": (51.5074, -0.1278),
    "Paris": (48.8566, 2.3522),
    "Tokyo": (35.6762, 139.6503),
    "Sydney": (-33.8688, 151.2093),
}

# Racetidtagning
PROXIMITY_THRESHOLD_KM = 0.05  # 50 meter
TICK_INTERVAL = 0.1  # sekunder

# Backend-tabeller
ROUTES_TABLE = "routes"
COMPLETIONS_TABLE = "route_completions"

# Cache-inställningar
CACHE_TTL = 3600  # 1 timme
