import pytest

from footprint.services.countries import (
    convert_alpha2_to_alpha3,
    degradation_chain,
    get_available_precision,
    is_country_supported,
)


@pytest.mark.parametrize(
    "country, requested, expected",
    [
        ("FRA", "city", "ADM2"),
        ("FRA", "province", "ADM1"),
        ("FRA", "country", "ADM0"),
        ("AUS", "city", "ADM1"),       # no ADM2 shapes
        ("NLD", "province", "ADM0"),   # no ADM1 shapes
        ("BRA", "country", None),      # no ADM0 shapes
        ("BRA", "city", "ADM2"),
        ("XYZ", "city", None),
    ],
)
def test_get_available_precision_degrades(country, requested, expected):
    assert get_available_precision(country, requested) == expected


def test_degradation_chain_lists_coarser_levels():
    assert degradation_chain("DEU", "city") == ["ADM2", "ADM1", "ADM0"]
    assert degradation_chain("KOR", "province") == ["ADM1"]
    assert degradation_chain("SGP", "city") == ["ADM2", "ADM0"]
    assert degradation_chain("KEN", "city") == []


def test_alpha2_conversion_is_case_insensitive():
    assert convert_alpha2_to_alpha3("fr") == "FRA"
    assert convert_alpha2_to_alpha3("GB") == "GBR"
    assert convert_alpha2_to_alpha3("ke") is None
    assert convert_alpha2_to_alpha3("") is None


def test_is_country_supported():
    assert is_country_supported("JPN")
    assert not is_country_supported("KEN")
    assert not is_country_supported(None)
