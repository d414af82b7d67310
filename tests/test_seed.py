"""Tests for loading the scheme dataset."""

from __future__ import annotations

import orjson
import pytest

from pension.data.seed import DEFAULT_SCHEMES_PATH, load_schemes
from pension.models.enums import FormulaKind


class TestBundledDataset:
    def test_file_exists(self) -> None:
        assert DEFAULT_SCHEMES_PATH.exists()

    def test_ids_unique(self, bundled_schemes) -> None:
        ids = [s.scheme_id for s in bundled_schemes]
        assert len(ids) == len(set(ids))

    def test_loads_all_records(self, bundled_schemes) -> None:
        raw = orjson.loads(DEFAULT_SCHEMES_PATH.read_bytes())
        assert len(bundled_schemes) == len(raw) == 16

    def test_field_mapping(self, bundled_schemes) -> None:
        nsap = next(s for s in bundled_schemes if s.scheme_id == "NSAP_IGNOAPS")
        assert nsap.name
        assert nsap.min_age == 60
        assert nsap.max_age is None, "null upper bound means unbounded"
        assert nsap.official_info_link and nsap.official_info_link.startswith("https://")

    def test_declared_formula_kind(self, bundled_schemes) -> None:
        apy = next(s for s in bundled_schemes if s.scheme_id == "APY")
        assert apy.formula_kind == FormulaKind.FIXED_CONTRIBUTION


class TestLoadSchemes:
    def _write(self, tmp_path, records) -> str:
        path = tmp_path / "schemes.json"
        path.write_bytes(orjson.dumps(records))
        return str(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_schemes(tmp_path / "absent.json")

    def test_malformed_json(self, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("[{not json")
        with pytest.raises(orjson.JSONDecodeError):
            load_schemes(path)

    def test_duplicate_ids_skipped(self, tmp_path) -> None:
        path = self._write(
            tmp_path,
            [
                {"scheme_id": "A", "scheme_name": "First"},
                {"scheme_id": "A", "scheme_name": "Second"},
            ],
        )
        schemes = load_schemes(path)
        assert [s.name for s in schemes] == ["First"]

    def test_invalid_records_skipped(self, tmp_path) -> None:
        path = self._write(
            tmp_path,
            [
                {"scheme_name": "no id"},
                {"scheme_id": "B", "scheme_name": "Inverted", "eligibility_age_min": 60, "eligibility_age_max": 18},
                {"scheme_id": "C", "name": "Plain name key", "eligibility_age_min": ""},
            ],
        )
        schemes = load_schemes(path)
        assert [s.scheme_id for s in schemes] == ["C"]
        assert schemes[0].min_age is None

    def test_link_may_be_plain_string(self, tmp_path) -> None:
        path = self._write(
            tmp_path,
            [{"scheme_id": "D", "scheme_name": "D", "official_info_links": "https://example.org"}],
        )
        assert load_schemes(path)[0].official_info_link == "https://example.org"
