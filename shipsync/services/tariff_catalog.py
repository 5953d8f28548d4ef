# shipsync/services/tariff_catalog.py
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

logger = logging.getLogger("shipsync.catalog")

DEFAULT_DESCRIPTION = "General merchandise"
DEFAULT_TARIFF_CODE = "9999999999"
DEFAULT_COUNTRY = "CA"

COMPLIMENTARY_SKU = "LIST-DEF"


@dataclass(frozen=True)
class TariffRecord:
    sku: str
    description: str
    tariff_code: str
    country_of_origin: str


COMPLIMENTARY_RECORD = TariffRecord(
    sku=COMPLIMENTARY_SKU,
    description="Paper stickers (promotional material)",
    tariff_code="4821100010",
    country_of_origin="CA",
)

PLANNER_RECORD = TariffRecord(
    sku="PLANNER",
    description="Planner agenda (bound diary)",
    tariff_code="4820102010",
    country_of_origin="CA",
)

# (predicate on uppercased sku, record); first hit wins
KeywordRule = Tuple[Callable[[str], bool], TariffRecord]

KEYWORD_RULES: List[KeywordRule] = [
    (lambda s: s == COMPLIMENTARY_SKU, COMPLIMENTARY_RECORD),
    (lambda s: any(tok in s for tok in ("PLANNER", "DAI", "DLP")), PLANNER_RECORD),
]

CatalogSource = Union[str, Path, Iterable[str]]


def _cell(row: List[str], idx: int) -> str:
    return row[idx].strip() if idx < len(row) else ""


class TariffCatalog:
    """
    SKU → tariff classification.

    lookup() order: exact sku → base sku (last "-segment" stripped) → keyword rules → fallback.
    Lookups never raise and always return a record.
    """

    def __init__(self, rules: Optional[List[KeywordRule]] = None) -> None:
        self._records: Dict[str, TariffRecord] = {}
        self._rules = list(rules) if rules is not None else list(KEYWORD_RULES)
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._records)

    # --------------------- load ---------------------

    def load(self, source: CatalogSource) -> bool:
        """
        Parse `sku,description,tariffCode,countryOfOrigin` rows (header skipped).

        Returns False (and logs) when the source cannot be read; the previous
        mapping is kept in that case.
        """
        try:
            if isinstance(source, (str, Path)):
                with open(source, newline="", encoding="utf-8") as fh:
                    records = self._parse(fh)
            else:
                records = self._parse(source)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            logger.error("tariff catalog load failed source=%s: %s", source, e)
            return False

        records[COMPLIMENTARY_SKU] = COMPLIMENTARY_RECORD
        self._records = records
        self._loaded = True
        logger.info("tariff catalog loaded: %d records", len(records))
        return True

    @staticmethod
    def _parse(lines: Iterable[str]) -> Dict[str, TariffRecord]:
        out: Dict[str, TariffRecord] = {}
        reader = csv.reader(lines)
        header_seen = False
        for row in reader:
            if not row or all(not c.strip() for c in row):
                continue
            if not header_seen:
                header_seen = True
                continue
            sku = _cell(row, 0)
            if not sku:
                continue
            out[sku.upper()] = TariffRecord(
                sku=sku,
                description=_cell(row, 1) or DEFAULT_DESCRIPTION,
                tariff_code=_cell(row, 2) or DEFAULT_TARIFF_CODE,
                country_of_origin=(_cell(row, 3) or DEFAULT_COUNTRY).upper(),
            )
        return out

    # --------------------- lookup ---------------------

    def lookup(self, sku: Optional[str]) -> TariffRecord:
        raw = (sku or "").strip()
        key = raw.upper()

        if key:
            hit = self._records.get(key)
            if hit is not None:
                return hit

            if "-" in key:
                base = key.rsplit("-", 1)[0]
                hit = self._records.get(base)
                if hit is not None:
                    return hit

            for predicate, record in self._rules:
                if predicate(key):
                    return replace(record, sku=raw)

        return TariffRecord(
            sku=raw,
            description=DEFAULT_DESCRIPTION,
            tariff_code=DEFAULT_TARIFF_CODE,
            country_of_origin=DEFAULT_COUNTRY,
        )
