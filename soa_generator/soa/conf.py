from django.conf import settings

DEFAULTS = {
    "SOA_COMPANY_TITLE": "AFDHAL AL AGHDHIA FOR TRADING",
    "SOA_CURRENCY": "SAR",
    "SOA_HEADER_SCAN_LIMIT": 50,
    "SOA_DEFAULT_OPERATING_UNIT": "FMCG",
    "SOA_DEFAULT_REGION": "Center",
    "SOA_DEFAULT_LOGO": None,
    "SOA_FOOTER_NOTE": (
        "Thank you for your continued cooperation. We kindly request that the "
        "outstanding balance be settled at your earliest convenience."
    ),
}


def get(name):
    return getattr(settings, name, DEFAULTS[name])
