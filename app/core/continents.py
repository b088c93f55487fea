"""ISO 3166-1 alpha-2 country code to continent lookup."""

UNKNOWN_CONTINENT = "Other"

_CONTINENT_COUNTRIES = {
    "Asia": (
        "AF AM AZ BH BD BT BN KH CN CY GE IN ID IR IQ IL JP JO KZ KW KG LA LB "
        "MY MV MN MM NP KP OM PK PS PH QA SA SG KR LK SY TW TJ TH TL TR TM AE "
        "UZ VN YE"
    ),
    "Europe": (
        "AL AD AT BY BE BA BG HR CZ DK EE FI FR DE GR HU IS IE IT XK LV LI LT "
        "LU MK MT MD MC ME NL NO PL PT RO RU SM RS SK SI ES SE CH UA GB VA"
    ),
    "Africa": (
        "DZ AO BJ BW BF BI CM CV CF TD KM CG CD CI DJ EG GQ ER ET GA GM GH GN "
        "GW KE LS LR LY MG MW ML MR MU MA MZ NA NE NG RW ST SN SC SL SO ZA SS "
        "SD SZ TZ TG TN UG ZM ZW"
    ),
    "North America": (
        "AG BS BB BZ CA CR CU DM DO SV GD GT HT HN JM MX NI PA KN LC VC TT US"
    ),
    "South America": "AR BO BR CL CO EC GY PY PE SR UY VE",
    "Oceania": "AU FJ KI MH FM NR NZ PW PG WS SB TO TV VU",
    "Antarctica": "AQ",
}

COUNTRY_TO_CONTINENT = {
    code: continent
    for continent, codes in _CONTINENT_COUNTRIES.items()
    for code in codes.split()
}


def continent_for(country_code: str) -> str:
    """Continent name for a country code, or "Other" when unknown."""
    if not country_code:
        return UNKNOWN_CONTINENT
    return COUNTRY_TO_CONTINENT.get(country_code.strip().upper(), UNKNOWN_CONTINENT)
