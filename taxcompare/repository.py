"""Tax-year constants and state ruleset repository.

Constructed once and handed to the engines. Raw tables (built-in or JSON)
are validated into frozen pydantic models on first access and cached by
``year`` / ``(year, STATE)``; cached models are shared read-only.

JSON overrides live in a directory as:
  - ``federal_<year>.json``: one year's federal constants
  - ``states_<year>.json``: ``{"states": {"CA": {...}, ...}}``
"""

import json
import logging
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from taxcompare.engines.brackets import builtin_years, federal_year_data
from taxcompare.engines.state_rules import builtin_state_codes, state_year_data
from taxcompare.exceptions import (
    InvalidRuleSetError,
    MissingStateRulesError,
    MissingTaxYearError,
)
from taxcompare.models.constants import TaxYearConstants
from taxcompare.models.rules import StateRuleSet
from taxcompare.models.scenario import normalize_state

logger = logging.getLogger(__name__)


class TaxRuleRepository:
    """Serves ``TaxYearConstants`` and ``StateRuleSet`` objects by key."""

    def __init__(
        self,
        federal: dict[int, dict] | None = None,
        states: dict[int, dict[str, dict]] | None = None,
        strict: bool = True,
        source: str = "builtin",
    ) -> None:
        self.strict = strict
        self.source = source
        self._federal_raw: dict[int, dict] = dict(federal or {})
        self._state_raw: dict[int, dict[str, dict]] = {
            year: {normalize_state(code): rules for code, rules in entries.items()}
            for year, entries in (states or {}).items()
        }
        self._constants: dict[int, TaxYearConstants] = {}
        self._rules: dict[tuple[int, str], StateRuleSet] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def builtin(cls, strict: bool = True) -> "TaxRuleRepository":
        """Repository over the tables shipped in ``taxcompare.engines``."""
        federal = {year: federal_year_data(year) for year in builtin_years()}
        states = {
            year: {code: state_year_data(year, code) for code in builtin_state_codes(year)}
            for year in builtin_years()
        }
        return cls(federal=federal, states=states, strict=strict, source="builtin")

    @classmethod
    def from_directory(cls, path: Path, strict: bool = True) -> "TaxRuleRepository":
        """Built-in tables overlaid with JSON files found in ``path``."""
        path = Path(path)
        if not path.is_dir():
            raise InvalidRuleSetError(str(path), "rules directory does not exist")

        repo = cls.builtin(strict=strict)
        repo.source = str(path)

        for file in sorted(path.glob("federal_*.json")):
            year = cls._year_from_name(file, "federal_")
            logger.info("Loading federal constants for %s from %s", year, file)
            repo._federal_raw[year] = cls._read_json(file)

        for file in sorted(path.glob("states_*.json")):
            year = cls._year_from_name(file, "states_")
            data = cls._read_json(file)
            entries = data.get("states", data)
            if not isinstance(entries, dict):
                raise InvalidRuleSetError(str(file), "expected an object of states")
            logger.info("Loading %d state rulesets for %s from %s", len(entries), year, file)
            year_rules = repo._state_raw.setdefault(year, {})
            for code, rules in entries.items():
                year_rules[normalize_state(code)] = rules

        return repo

    @staticmethod
    def _year_from_name(file: Path, prefix: str) -> int:
        suffix = file.stem[len(prefix):]
        if not suffix.isdigit():
            raise InvalidRuleSetError(str(file), "file name must end in a 4-digit year")
        return int(suffix)

    @staticmethod
    def _read_json(file: Path) -> dict:
        try:
            data = json.loads(file.read_text(encoding="utf-8"), parse_float=Decimal)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidRuleSetError(str(file), str(e)) from e
        if not isinstance(data, dict):
            raise InvalidRuleSetError(str(file), "expected a JSON object")
        return data

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def available_years(self) -> list[int]:
        return sorted(self._federal_raw)

    def available_states(self, year: int) -> list[str]:
        return sorted(self._state_raw.get(year, {}))

    def constants(self, year: int) -> TaxYearConstants:
        cached = self._constants.get(year)
        if cached is not None:
            return cached

        raw = self._federal_raw.get(year)
        if raw is None:
            raise MissingTaxYearError(year)

        try:
            constants = TaxYearConstants.model_validate({"year": year, **raw})
        except ValidationError as e:
            raise InvalidRuleSetError(f"{self.source}:federal_{year}", str(e)) from e
        if constants.year != year:
            raise InvalidRuleSetError(
                f"{self.source}:federal_{year}",
                f"constants are tagged for {constants.year}",
            )

        logger.info("Loaded federal constants for %s from %s", year, self.source)
        self._constants[year] = constants
        return constants

    def state_rules(self, year: int, state: str) -> StateRuleSet:
        code = normalize_state(state)
        key = (year, code)
        cached = self._rules.get(key)
        if cached is not None:
            return cached

        raw = self._state_raw.get(year, {}).get(code)
        if raw is None:
            raise MissingStateRulesError(code, year)

        origin = f"{self.source}:states_{year}:{code}"
        tagged = {"state": code, "year": year, **raw}
        try:
            rules = StateRuleSet.model_validate(tagged, context={"strict_ops": self.strict})
        except ValidationError as e:
            raise InvalidRuleSetError(origin, str(e)) from e

        if normalize_state(rules.state) != code or rules.year != year:
            raise InvalidRuleSetError(
                origin, f"ruleset is tagged {rules.state}/{rules.year}, expected {code}/{year}"
            )

        logger.info("Loaded %s state rules for %s from %s", code, year, self.source)
        self._rules[key] = rules
        return rules
