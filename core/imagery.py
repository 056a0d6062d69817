"""
Street View Imagery

Builds Google Street View Static API image URLs for a property. Without an
API key a fixed placeholder image is used instead.
"""

from typing import Final, Optional
from urllib.parse import urlencode


STREET_VIEW_ENDPOINT: Final[str] = "https://maps.googleapis.com/maps/api/streetview"

DEFAULT_WIDTH: Final[int] = 640
DEFAULT_HEIGHT: Final[int] = 400

PLACEHOLDER_IMAGE_URL: Final[str] = (
    "https://lh3.googleusercontent.com/aida-public/"
    "AB6AXuDaz4vBqBbdz8_u--mrfXcs4SZknjuRduBN3qoZIuFkdu7MnReKs1404zd7BfIEumEwyHr1_"
    "A2jtg1c-6h_fjZNxrfY5l-HgLuNBmGw2PtUhkOVHTSqeZnf85NU2OAcTE1ucIiTGU_thdauARb3Bd"
    "Jh9Qt0jZYAxxuAutnCUGbxgDcQV8YWoq6KEL5qP1IZvJEjCGGhrAreK2gTPyQFKimHN5e94Vw0qa"
    "m7AgrSzHhgY36IDjAvDmRqYJixVv2RiYeLqxzANOTMtyU"
)


def _street_view(
    location: str,
    api_key: Optional[str],
    width: int,
    height: int,
    heading: Optional[float],
    pitch: float,
    fov: float,
) -> str:
    if not api_key:
        return PLACEHOLDER_IMAGE_URL

    params = {
        "size": f"{width}x{height}",
        "location": location,
        "pitch": pitch,
        "fov": fov,
        "key": api_key,
    }
    if heading is not None:
        params["heading"] = heading
    return f"{STREET_VIEW_ENDPOINT}?{urlencode(params)}"


def street_view_url(
    latitude: float,
    longitude: float,
    api_key: Optional[str] = None,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    heading: Optional[float] = None,
    pitch: float = 0,
    fov: float = 90,
) -> str:
    """
    Street View image URL for a coordinate pair.

    Args:
        heading: Camera direction 0-360; omitted lets Google face the road
        pitch: Up/down angle, -90 to 90
        fov: Field of view (zoom), 10-120
    """
    return _street_view(
        f"{latitude},{longitude}", api_key, width, height, heading, pitch, fov
    )


def street_view_url_by_address(
    address: str,
    api_key: Optional[str] = None,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    heading: Optional[float] = None,
    pitch: float = 0,
    fov: float = 90,
) -> str:
    """Street View image URL for a free-text address."""
    return _street_view(address, api_key, width, height, heading, pitch, fov)
