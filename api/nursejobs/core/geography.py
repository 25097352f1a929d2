"""US state tables and the slug heuristics used for listing paths.

``detect_state`` is a best-effort heuristic, not a general parser: two-letter
segments are looked up in the code table, longer ones only match when they have
at most two hyphens and spell one of the 50 state names or D.C.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

STATE_NAMES = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    "DC": "District of Columbia",
}

STATE_CODES_BY_NAME = {name.lower(): code for code, name in STATE_NAMES.items()}
MAX_STATE_SLUG_HYPHENS = 2

_STATE_NAME_RE = re.compile(
    "^(?:" + "|".join(re.escape(name.lower()).replace(r"\ ", r"\s+") for name in STATE_NAMES.values()) + ")$"
)
_CITY_STRIP_RE = re.compile(r"[.']")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class StateRef:
    code: str
    name: str

    @property
    def slug(self) -> str:
        return self.code.lower()


def state_name(code: str | None) -> str | None:
    if not code:
        return None
    return STATE_NAMES.get(code.strip().upper())


def normalize_state(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = _WHITESPACE_RE.sub(" ", value.strip())
    if len(cleaned) == 2 and cleaned.upper() in STATE_NAMES:
        return cleaned.upper()
    return STATE_CODES_BY_NAME.get(cleaned.lower())


def detect_state(segment: str | None) -> StateRef | None:
    if not segment:
        return None
    if len(segment) == 2:
        code = segment.upper()
        name = STATE_NAMES.get(code)
        return StateRef(code=code, name=name) if name else None

    if segment.count("-") > MAX_STATE_SLUG_HYPHENS:
        return None
    spaced = segment.lower().replace("-", " ")
    if not _STATE_NAME_RE.match(spaced):
        return None
    code = normalize_state(spaced)
    if code is None:
        return None
    return StateRef(code=code, name=STATE_NAMES[code])


def city_slug(city: str | None) -> str | None:
    if not city:
        return None
    cleaned = _CITY_STRIP_RE.sub("", city.strip().lower())
    slug = _WHITESPACE_RE.sub("-", cleaned)
    return slug or None


def city_from_slug(slug: str) -> str:
    return " ".join(word.capitalize() for word in slug.split("-") if word)
