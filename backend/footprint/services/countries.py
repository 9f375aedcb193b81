"""Countries with boundary data in the local simplified dataset.

ADM0 = country, ADM1 = province/state, ADM2 = city/county.
"""
from dataclasses import dataclass
from typing import Optional

PRECISIONS = ("city", "province", "country")
ADM_LEVELS = ("ADM0", "ADM1", "ADM2")

PRECISION_TO_ADM = {
    "country": "ADM0",
    "province": "ADM1",
    "city": "ADM2",
}

# Levels tried for each requested precision, finest first
_DEGRADATION = {
    "city": ("ADM2", "ADM1", "ADM0"),
    "province": ("ADM1", "ADM0"),
    "country": ("ADM0",),
}


@dataclass(frozen=True)
class CountryPrecision:
    """Which administrative levels are available for a country."""
    name: str
    adm0: bool
    adm1: bool
    adm2: bool

    def has(self, adm_level: str) -> bool:
        return getattr(self, adm_level.lower(), False)


# ISO 3166-1 alpha-3 -> availability
SUPPORTED_COUNTRIES: dict[str, CountryPrecision] = {
    "ARG": CountryPrecision("Argentina", adm0=True, adm1=True, adm2=True),
    "AUS": CountryPrecision("Australia", adm0=True, adm1=True, adm2=False),
    "BRA": CountryPrecision("Brazil", adm0=False, adm1=True, adm2=True),
    "CAN": CountryPrecision("Canada", adm0=True, adm1=True, adm2=False),
    "CHE": CountryPrecision("Switzerland", adm0=True, adm1=True, adm2=True),
    "DEU": CountryPrecision("Germany", adm0=True, adm1=True, adm2=True),
    "ESP": CountryPrecision("Spain", adm0=True, adm1=True, adm2=True),
    "FRA": CountryPrecision("France", adm0=True, adm1=True, adm2=True),
    "GBR": CountryPrecision("United Kingdom", adm0=True, adm1=True, adm2=True),
    "IND": CountryPrecision("India", adm0=True, adm1=True, adm2=False),
    "ITA": CountryPrecision("Italy", adm0=True, adm1=True, adm2=True),
    "JPN": CountryPrecision("Japan", adm0=True, adm1=True, adm2=True),
    "KOR": CountryPrecision("South Korea", adm0=False, adm1=True, adm2=True),
    "MEX": CountryPrecision("Mexico", adm0=True, adm1=True, adm2=True),
    "NLD": CountryPrecision("Netherlands", adm0=True, adm1=False, adm2=True),
    "RUS": CountryPrecision("Russia", adm0=True, adm1=True, adm2=True),
    "SGP": CountryPrecision("Singapore", adm0=True, adm1=False, adm2=True),
    "USA": CountryPrecision("United States", adm0=True, adm1=True, adm2=True),
    "ZAF": CountryPrecision("South Africa", adm0=True, adm1=True, adm2=False),
}

# Geocoders return alpha-2, the dataset is keyed by alpha-3
ALPHA2_TO_ALPHA3 = {
    "ar": "ARG", "au": "AUS", "br": "BRA", "ca": "CAN", "ch": "CHE",
    "de": "DEU", "es": "ESP", "fr": "FRA", "gb": "GBR", "in": "IND",
    "it": "ITA", "jp": "JPN", "kr": "KOR", "mx": "MEX", "nl": "NLD",
    "ru": "RUS", "sg": "SGP", "us": "USA", "za": "ZAF",
}


def convert_alpha2_to_alpha3(alpha2: str) -> Optional[str]:
    if not alpha2:
        return None
    return ALPHA2_TO_ALPHA3.get(alpha2.lower())


def is_country_supported(alpha3: Optional[str]) -> bool:
    return bool(alpha3) and alpha3 in SUPPORTED_COUNTRIES


def degradation_chain(alpha3: str, requested: str) -> list[str]:
    """Available ADM levels at or coarser than ``requested``, finest first."""
    config = SUPPORTED_COUNTRIES.get(alpha3)
    if config is None:
        return []
    return [level for level in _DEGRADATION.get(requested, ()) if config.has(level)]


def get_available_precision(alpha3: str, requested: str) -> Optional[str]:
    """Best ADM level available for the requested precision, or None."""
    chain = degradation_chain(alpha3, requested)
    return chain[0] if chain else None
