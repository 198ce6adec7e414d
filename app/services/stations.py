"""Static transit line data and station marker ids for the map."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

STATION_PREFIX = "station-"

# station-<line>-<station>-<index>; line names never contain "-", station names may.
_STATION_ID_RE = re.compile(r"^station-(?P<line>[^-]+)-(?P<station>.+)-(?P<index>\d+)$")


@dataclass(frozen=True)
class Station:
    name: str
    lat: float
    lng: float


@dataclass(frozen=True)
class TransitLine:
    name: str
    color: str
    stations: List[Station]
    description: Optional[str] = None


@dataclass(frozen=True)
class StationMarker:
    """A clickable station on the map. ``id`` has the form ``<line>-<station>-<index>``."""

    id: str
    name: str
    lat: float
    lng: float
    line_name: str
    line_color: str

    @property
    def pin_id(self) -> str:
        return f"{STATION_PREFIX}{self.id}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pinId": self.pin_id,
            "name": self.name,
            "position": {"lat": self.lat, "lng": self.lng},
            "line": {"name": self.line_name, "color": self.line_color},
        }


@dataclass(frozen=True)
class StationRef:
    line_name: str
    station_name: str
    index: int


INTERCITY_LINES = [
    TransitLine("Tokaido Shinkansen", "#0072BC", [
        Station("Tokyo", 35.6812362, 139.7649361),
        Station("Shinagawa", 35.6284713, 139.7387787),
        Station("Shin-Yokohama", 35.5075428, 139.6166769),
        Station("Odawara", 35.2564369, 139.1549223),
        Station("Atami", 35.0950666, 139.0753693),
        Station("Mishima", 35.1218833, 138.9123731),
        Station("Shizuoka", 34.9719986, 138.4101275),
        Station("Hamamatsu", 34.7040471, 137.7287234),
        Station("Nagoya", 35.1709456, 136.8815428),
        Station("Kyoto", 34.9858126, 135.7586962),
        Station("Shin-Osaka", 34.7336551, 135.5004553),
    ], description="Tokyo to Osaka"),
    TransitLine("Sanyo Shinkansen", "#009250", [
        Station("Shin-Osaka", 34.7336551, 135.5004553),
        Station("Shin-Kobe", 34.6912754, 135.197438),
        Station("Himeji", 34.8330939, 134.6897252),
        Station("Okayama", 34.6662659, 133.9154937),
        Station("Hiroshima", 34.3973853, 132.4599466),
        Station("Kokura", 33.8866736, 130.8830347),
        Station("Hakata", 33.5901879, 130.4206434),
    ], description="Osaka to Fukuoka"),
]

TOKYO_LINES = [
    TransitLine("Yamanote Line", "#9ACD32", [
        Station("Tokyo Station", 35.6812362, 139.7649361),
        Station("Yurakucho", 35.6749192, 139.7628384),
        Station("Shimbashi", 35.6661933, 139.7583319),
        Station("Shinagawa", 35.6284713, 139.7387787),
        Station("Meguro", 35.6339914, 139.7159333),
        Station("Ebisu", 35.6465876, 139.7101609),
        Station("Shibuya", 35.6580339, 139.7016358),
        Station("Harajuku", 35.6702285, 139.7026975),
        Station("Shinjuku", 35.6896067, 139.7005713),
        Station("Ikebukuro", 35.7295087, 139.7109316),
        Station("Nippori", 35.7280426, 139.7706546),
        Station("Ueno", 35.7141311, 139.7774482),
        Station("Akihabara", 35.6983573, 139.7731188),
        Station("Kanda", 35.691796, 139.770883),
    ]),
    TransitLine("Ginza Line", "#FF9500", [
        Station("Shibuya", 35.6580339, 139.7016358),
        Station("Omotesando", 35.6659867, 139.7126907),
        Station("Akasaka-Mitsuke", 35.6766708, 139.7375322),
        Station("Ginza", 35.6712074, 139.7636591),
        Station("Ueno", 35.7141311, 139.7774482),
    ]),
]

OSAKA_LINES = [
    TransitLine("Midosuji Line", "#E5171F", [
        Station("Shin-Osaka", 34.7336551, 135.5004553),
        Station("Umeda", 34.7036581, 135.499663),
        Station("Yodoyabashi", 34.6926981, 135.5016447),
        Station("Namba", 34.668519, 135.5022535),
        Station("Tennoji", 34.6479369, 135.5143744),
    ]),
]

KYOTO_LINES = [
    TransitLine("Karasuma Line", "#007AC0", [
        Station("Kokusaikaikan", 35.0454854, 135.7841015),
        Station("Kitaoji", 35.0429383, 135.7546001),
        Station("Karasuma Oike", 35.0114274, 135.7588134),
        Station("Kyoto Station", 34.9858126, 135.7586962),
    ]),
]

NAGOYA_LINES = [
    TransitLine("Higashiyama Line", "#F8B500", [
        Station("Nagoya Station", 35.1709456, 136.8815428),
        Station("Sakae", 35.1691887, 136.9090596),
        Station("Higashiyama Koen", 35.1566467, 136.9755787),
        Station("Fujigaoka", 35.1900023, 137.0443258),
    ]),
]

LINES_BY_VIEW: Dict[str, List[TransitLine]] = {
    "tokyo": TOKYO_LINES,
    "osaka": OSAKA_LINES,
    "kyoto": KYOTO_LINES,
    "nagoya": NAGOYA_LINES,
}

MAP_VIEWS = ["japan", *LINES_BY_VIEW]


def lines_for_view(view: str) -> List[TransitLine]:
    """The "japan" view shows the intercity lines plus every city network."""
    if view == "japan":
        lines = list(INTERCITY_LINES)
        for city_lines in LINES_BY_VIEW.values():
            lines.extend(city_lines)
        return lines
    return list(LINES_BY_VIEW.get(view, []))


def station_markers(view: str) -> List[StationMarker]:
    markers = []
    for line in lines_for_view(view):
        for index, station in enumerate(line.stations):
            markers.append(StationMarker(
                id=f"{line.name}-{station.name}-{index}",
                name=station.name,
                lat=station.lat,
                lng=station.lng,
                line_name=line.name,
                line_color=line.color,
            ))
    return markers


def is_station_id(pin_id: str) -> bool:
    return pin_id.startswith(STATION_PREFIX)


def parse_station_id(pin_id: str) -> Optional[StationRef]:
    """Returns None when ``pin_id`` is not a well-formed station pin id."""
    match = _STATION_ID_RE.match(pin_id)
    if not match:
        return None
    return StationRef(match.group("line"), match.group("station"), int(match.group("index")))


def station_position_key(pin_id: str) -> str:
    return f"{pin_id}-position"


def is_station_position_key(key: str) -> bool:
    return key.startswith(STATION_PREFIX) and key.endswith("-position")
