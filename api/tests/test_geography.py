from __future__ import annotations

from nursejobs.core.geography import city_from_slug, city_slug, detect_state, normalize_state, state_name


def test_detect_state_accepts_codes_and_names() -> None:
    state = detect_state("ca")
    assert state is not None
    assert (state.code, state.name, state.slug) == ("CA", "California", "ca")

    new_york = detect_state("new-york")
    assert new_york is not None and new_york.code == "NY"

    dc = detect_state("district-of-columbia")
    assert dc is not None and dc.code == "DC"


def test_detect_state_rejects_cities_and_job_slugs() -> None:
    assert detect_state("los-angeles") is None
    assert detect_state("xx") is None
    assert detect_state("icu-nurse-los-angeles-ca-123") is None
    assert detect_state("") is None
    assert detect_state(None) is None


def test_normalize_state() -> None:
    assert normalize_state("California") == "CA"
    assert normalize_state(" tx ") == "TX"
    assert normalize_state("north   carolina") == "NC"
    assert normalize_state("Atlantis") is None
    assert state_name("wa") == "Washington"


def test_city_slug_round_trip() -> None:
    assert city_slug("Los Angeles") == "los-angeles"
    assert city_slug("St. Louis") == "st-louis"
    assert city_slug("Coeur d'Alene") == "coeur-dalene"
    assert city_slug("   ") is None
    assert city_from_slug("san-diego") == "San Diego"
