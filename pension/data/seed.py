"""Loading of the bundled pension-scheme dataset.

Reads scheme definitions from ``pension_schemes.json`` (or a configured
path) into validated, immutable :class:`SchemeRecord` instances.
Designed to run once at application startup; the result is treated as
read-only for the lifetime of the process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
import structlog

from pension.models.scheme import SchemeRecord

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

_DATA_DIR: Path = Path(__file__).resolve().parent / "schemes"
DEFAULT_SCHEMES_PATH: Path = _DATA_DIR / "pension_schemes.json"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_schemes(path: Path | str | None = None) -> list[SchemeRecord]:
    """Load pension scheme data from a JSON file.

    Parameters
    ----------
    path:
        Path to the JSON file.  Defaults to the bundled
        ``pension_schemes.json``.

    Returns
    -------
    list[SchemeRecord]
        Parsed records in file order.  Records that fail validation or
        repeat an earlier ``scheme_id`` are skipped and logged.

    Raises
    ------
    FileNotFoundError
        If the JSON file does not exist.
    orjson.JSONDecodeError
        If the JSON is malformed.
    """
    file_path = Path(path) if path else DEFAULT_SCHEMES_PATH

    if not file_path.exists():
        raise FileNotFoundError(f"Scheme data file not found: {file_path}")

    raw_schemes: list[dict[str, Any]] = orjson.loads(file_path.read_bytes())

    schemes: list[SchemeRecord] = []
    seen_ids: set[str] = set()
    for raw in raw_schemes:
        try:
            scheme = _parse_scheme(raw)
        except Exception:
            logger.warning(
                "seed.parse_error",
                scheme_id=raw.get("scheme_id", "unknown"),
                exc_info=True,
            )
            continue

        if scheme.scheme_id in seen_ids:
            logger.warning("seed.duplicate_scheme_id", scheme_id=scheme.scheme_id)
            continue

        seen_ids.add(scheme.scheme_id)
        schemes.append(scheme)

    logger.info("seed.loaded_schemes", count=len(schemes), source=str(file_path))
    return schemes


def _optional_age(value: Any) -> int | None:
    """Dataset ages may be ``null`` or an empty string for "no bound"."""
    if value is None or value == "":
        return None
    return int(value)


def _first_link(value: Any) -> str | None:
    if isinstance(value, list):
        return str(value[0]) if value else None
    return str(value) if value else None


def _parse_scheme(raw: dict[str, Any]) -> SchemeRecord:
    """Parse a raw JSON dict into a validated :class:`SchemeRecord`."""
    age_window = raw.get("age_window")

    return SchemeRecord(
        scheme_id=raw["scheme_id"],
        name=raw.get("scheme_name") or raw["name"],
        country=raw.get("country"),
        sector=raw.get("sector"),
        category=raw.get("category"),
        min_age=_optional_age(raw.get("eligibility_age_min")),
        max_age=_optional_age(raw.get("eligibility_age_max")),
        income_criteria=raw.get("income_criteria") or "",
        pension_formula=raw.get("pension_formula") or "",
        employee_contribution_pct=raw.get("contribution_employee_pct"),
        administering_agency=raw.get("administering_agency"),
        official_info_link=_first_link(raw.get("official_info_links")),
        formula_kind=raw.get("formula_kind"),
        age_window=age_window,
        age_brackets=raw.get("age_brackets", []),
        income_brackets=raw.get("income_brackets", []),
    )
