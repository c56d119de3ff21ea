"""Configured translations and the legal notice shown before copyrighted downloads."""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Translation:
    code: str
    full_name: str
    short_name: str
    sheet_name: str
    language: str
    language_name: str
    license: str
    is_public_domain: bool
    source: str
    source_id: Optional[int] = None  # bible.com version id
    joel3: bool = True
    mal4: bool = True
    comment: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


TRANSLATIONS: Dict[str, Translation] = {
    t.code: t for t in [
        Translation(
            code="ASV", full_name="American Standard Version", short_name="ASV", sheet_name="ASV",
            language="EN", language_name="en - English", license="Public domain",
            is_public_domain=True, source="bible.com", source_id=12,
            comment="http://web.archive.org/web/201710/https://www.bible.com/versions/12",
        ),
        Translation(
            code="KJV", full_name="King James Version", short_name="KJV", sheet_name="KJV",
            language="EN", language_name="en - English", license="Public domain",
            is_public_domain=True, source="bible.com", source_id=1,
            comment="http://web.archive.org/web/201709/https://www.bible.com/versions/1",
        ),
        Translation(
            code="NASB", full_name="New American Standard Bible", short_name="NASB",
            sheet_name="NASB", language="EN", language_name="en - English",
            license=("Copyright 1960, 1962, 1963, 1968, 1971, 1972, 1973, 1975, 1977, 1995 "
                     "by The Lockman Foundation"),
            is_public_domain=False, source="bible.com", source_id=100,
            comment="Requires legal agreement for non-public domain use",
        ),
        Translation(
            code="WEB", full_name="World English Bible", short_name="WEB", sheet_name="WEB",
            language="EN", language_name="en - English", license="Public domain",
            is_public_domain=True, source="bible.com", source_id=206,
            comment="http://web.archive.org/web/201709/https://www.bible.com/versions/206",
        ),
        Translation(
            code="HB", full_name="Het Boek", short_name="HB", sheet_name="HB",
            language="NL", language_name="nl - Nederlands",
            license="Copyright 1979, 1988, 2007 by Biblica, Inc.®",
            is_public_domain=False, source="bible.com", source_id=75,
        ),
        Translation(
            code="SV1750", full_name="Statenvertaling (1750)", short_name="SV1750",
            sheet_name="SV1750", language="NL", language_name="nl - Nederlands",
            license="Public domain", is_public_domain=True, source="bible.com", source_id=165,
        ),
        Translation(
            code="LS1910", full_name="Louis Segond (1910)", short_name="LS1910",
            sheet_name="LS1910", language="FR", language_name="fr - Français",
            license="Public domain", is_public_domain=True, source="bible.com", source_id=93,
        ),
        Translation(
            code="RV1602", full_name="Reina Valera (1602)", short_name="RV1602",
            sheet_name="RV1602", language="ES", language_name="es - Español",
            license="Public domain", is_public_domain=True, source="bible.com", source_id=147,
        ),
        # The Dutch sites only carry copyrighted editions
        Translation(
            code="BB", full_name="BasisBijbel", short_name="BB", sheet_name="BB",
            language="NL", language_name="nl - Nederlands",
            license="Copyrighted, home copy for personal use only",
            is_public_domain=False, source="basisbijbel.nl", joel3=False, mal4=False,
        ),
        Translation(
            code="NBV21", full_name="Nieuwe Bijbelvertaling 2021", short_name="NBV21",
            sheet_name="NBV21", language="NL", language_name="nl - Nederlands",
            license="Copyrighted, home copy for personal use only",
            is_public_domain=False, source="debijbel.nl", joel3=False, mal4=False,
        ),
    ]
}


def get_translation(code: str) -> Optional[Translation]:
    """Look up a translation by exact code, then case-insensitively."""
    if not code:
        return None
    if code in TRANSLATIONS:
        return TRANSLATIONS[code]
    wanted = code.strip().upper()
    for key, translation in TRANSLATIONS.items():
        if key.upper() == wanted:
            return translation
    return None


def list_translations(public_domain_only: bool = False) -> List[Translation]:
    return [t for t in TRANSLATIONS.values() if t.is_public_domain or not public_domain_only]


def translations_by_language(lang: str) -> List[Translation]:
    prefix = lang.lower()
    return [t for t in TRANSLATIONS.values()
            if t.language_name.lower().startswith(prefix) or t.language.lower() == prefix]


LEGAL_DISCLAIMER = {
    "english": {
        "title": "IMPORTANT LEGAL NOTICE",
        "content": [
            "Under Dutch law, downloading a copy of a copyright protected work is allowed if you "
            "are a natural person (i.e. a human, and not acting for a corporation) and the copy "
            "is for personal (home) use only, under the condition that you already own an "
            "otherwise legally acquired copy.",
            "",
            "WARNING: The law of your jurisdiction might be different. It may prohibit the use "
            "of this tool or set different requirements.",
            "",
            "Users must take full legal responsibility for the use of this application and the "
            "files it generates. By using this application, you agree to these terms and "
            "confirm that your use is legal in your jurisdiction.",
        ],
    },
    "dutch": {
        "title": "BELANGRIJK JURIDISCH BERICHT",
        "content": [
            "Het is onder het Nederlandse auteursrecht toegestaan om een kopie te maken van een "
            "werk waar auteursrecht op rust. Hiervoor gelden onder meer als voorwaarden dat de "
            "gebruiker een natuurlijke persoon is, dat het gaat om een thuiskopie voor eigen "
            "gebruik, en dat de gebruiker al een exemplaar in bezit heeft.",
            "",
            "WAARSCHUWING: De wet in uw jurisdictie kan anders zijn. Het kan het gebruik van "
            "deze applicatie verbieden of andere vereisten stellen.",
            "",
            "Gebruikers moeten de volledige juridische verantwoordelijkheid nemen voor het "
            "gebruik van deze applicatie en de bestanden die het genereert.",
        ],
    },
}
