# vacancy_stats/taxonomy.py
# Counties and occupation groups. Lookups return None/False, never raise.

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple


class TaxonomyKind(str, Enum):
    REGION = "region"
    OCCUPATION = "occupation"


# (code, name) as used by the upstream API
SWEDISH_REGIONS: List[Tuple[str, str]] = [
    ("01", "Stockholms län"),
    ("03", "Uppsala län"),
    ("04", "Södermanlands län"),
    ("05", "Östergötlands län"),
    ("06", "Jönköpings län"),
    ("07", "Kronobergs län"),
    ("08", "Kalmar län"),
    ("09", "Gotlands län"),
    ("10", "Blekinge län"),
    ("12", "Skåne län"),
    ("13", "Hallands län"),
    ("14", "Västra Götalands län"),
    ("17", "Värmlands län"),
    ("18", "Örebro län"),
    ("19", "Västmanlands län"),
    ("20", "Dalarnas län"),
    ("21", "Gävleborgs län"),
    ("22", "Västernorrlands län"),
    ("23", "Jämtlands län"),
    ("24", "Västerbottens län"),
    ("25", "Norrbottens län"),
]

# SSYK 2012 occupation groups (4-digit level)
OCCUPATION_GROUPS: List[Tuple[str, str]] = [
    ("2512", "Mjukvaru- och systemutvecklare m.fl."),
    ("2511", "Systemanalytiker och IT-arkitekter m.fl."),
    ("2513", "Utvecklare inom spel och digitala media"),
    ("2514", "Systemtestare och testledare"),
    ("2516", "IT-säkerhetsspecialister"),
    ("3512", "Supporttekniker, IT"),
    ("2142", "Civilingenjörsyrken inom bygg och anläggning"),
    ("2143", "Civilingenjörsyrken inom elektroteknik"),
    ("2144", "Civilingenjörsyrken inom maskinteknik"),
    ("2221", "Grundutbildade sjuksköterskor"),
    ("2211", "Specialistläkare"),
    ("5321", "Undersköterskor, hemtjänst, hemsjukvård, äldreboende och habilitering"),
    ("5323", "Undersköterskor, vård- och specialavdelning och mottagning"),
    ("5330", "Vårdbiträden"),
    ("5343", "Personliga assistenter"),
    ("5311", "Barnskötare"),
    ("2341", "Grundskollärare"),
    ("2342", "Förskollärare"),
    ("2330", "Gymnasielärare"),
    ("2343", "Fritidspedagoger"),
    ("5221", "Butikssäljare, dagligvaror"),
    ("5222", "Butikssäljare, fackhandel"),
    ("5230", "Kassapersonal m.fl."),
    ("4222", "Kundtjänstpersonal"),
    ("3322", "Företagssäljare"),
    ("2411", "Revisorer m.fl."),
    ("4111", "Ekonomiassistenter m.fl."),
    ("2423", "Personal- och HR-specialister"),
    ("2431", "Marknadsanalytiker och marknadsförare m.fl."),
    ("8332", "Lastbilsförare m.fl."),
    ("8331", "Buss- och spårvagnsförare"),
    ("4321", "Lager- och terminalpersonal"),
    ("7111", "Träarbetare, snickare m.fl."),
    ("7411", "Installationselektriker"),
    ("7231", "Motorfordonsmekaniker och fordonsreparatörer"),
    ("7126", "VVS-montörer m.fl."),
    ("5120", "Kockar och kalla jomfruer"),
    ("5131", "Hovmästare och servitörer"),
    ("9111", "Städare"),
]


def slugify(name: str, strip_suffix: Optional[str] = None) -> str:
    """
    Turn a Swedish display name into a URL slug.

    >>> slugify("Västra Götalands län", strip_suffix="län")
    'vastra-gotalands'
    """
    slug = name.lower().strip()
    if strip_suffix:
        slug = re.sub(rf"\s+{strip_suffix}$", "", slug)
    slug = re.sub(r"[åä]", "a", slug)
    slug = slug.replace("ö", "o").replace("é", "e")
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip().strip("-")


@dataclass(frozen=True)
class TaxonomyEntry:
    code: str
    name: str
    slug: str


class Taxonomy:
    def __init__(
        self,
        regions: Sequence[Tuple[str, str]] = SWEDISH_REGIONS,
        occupations: Sequence[Tuple[str, str]] = OCCUPATION_GROUPS,
    ):
        self._entries: Dict[TaxonomyKind, List[TaxonomyEntry]] = {
            TaxonomyKind.REGION: [
                TaxonomyEntry(code, name, slugify(name, strip_suffix="län"))
                for code, name in regions
            ],
            TaxonomyKind.OCCUPATION: [
                TaxonomyEntry(code, name, slugify(name)) for code, name in occupations
            ],
        }
        self._by_slug: Dict[TaxonomyKind, Dict[str, TaxonomyEntry]] = {}
        self._by_code: Dict[TaxonomyKind, Dict[str, TaxonomyEntry]] = {}
        for kind, entries in self._entries.items():
            by_slug = {e.slug: e for e in entries}
            if len(by_slug) != len(entries):
                raise ValueError(f"Duplicate {kind.value} slugs in taxonomy table")
            self._by_slug[kind] = by_slug
            self._by_code[kind] = {e.code: e for e in entries}

    def code_of(self, kind: TaxonomyKind, slug: str) -> Optional[str]:
        entry = self._by_slug[TaxonomyKind(kind)].get(slug)
        return entry.code if entry else None

    def slug_of(self, kind: TaxonomyKind, code: str) -> Optional[str]:
        entry = self._by_code[TaxonomyKind(kind)].get(code)
        return entry.slug if entry else None

    def name_of(self, kind: TaxonomyKind, slug: str) -> Optional[str]:
        entry = self._by_slug[TaxonomyKind(kind)].get(slug)
        return entry.name if entry else None

    def is_valid(self, kind: TaxonomyKind, slug: str) -> bool:
        return slug in self._by_slug[TaxonomyKind(kind)]

    def entries(self, kind: TaxonomyKind) -> List[TaxonomyEntry]:
        return list(self._entries[TaxonomyKind(kind)])

    def region_slugs(self) -> List[str]:
        return [e.slug for e in self._entries[TaxonomyKind.REGION]]


@dataclass(frozen=True)
class ParsedFilters:
    region: Optional[str] = None
    occupation: Optional[str] = None
    invalid: bool = False


def parse_filters(segments: Optional[Iterable[str]], taxonomy: Taxonomy) -> ParsedFilters:
    """
    Interpret dashboard URL path segments as filters.

    /vacancies/stockholms                  -> region only
    /vacancies/grundskollarare             -> occupation only
    /vacancies/stockholms/grundskollarare  -> both
    """
    parts = [s for s in (segments or []) if s]
    if not parts:
        return ParsedFilters()

    if len(parts) == 1:
        value = parts[0]
        if taxonomy.is_valid(TaxonomyKind.REGION, value):
            return ParsedFilters(region=value)
        if taxonomy.is_valid(TaxonomyKind.OCCUPATION, value):
            return ParsedFilters(occupation=value)
        return ParsedFilters(invalid=True)

    if len(parts) == 2:
        possible_region, possible_occupation = parts
        region = possible_region if taxonomy.is_valid(TaxonomyKind.REGION, possible_region) else None
        occupation = (
            possible_occupation
            if taxonomy.is_valid(TaxonomyKind.OCCUPATION, possible_occupation)
            else None
        )
        return ParsedFilters(
            region=region,
            occupation=occupation,
            invalid=region is None and occupation is None,
        )

    return ParsedFilters(invalid=True)
