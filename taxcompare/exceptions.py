"""Custom exceptions for taxcompare."""


class TaxComputationError(Exception):
    """Base exception for tax computation errors."""


class ConfigurationError(TaxComputationError):
    """Raised when tax-year constants or a state ruleset are missing or malformed.

    These are never defaulted: a silent fallback would produce a materially
    wrong tax number.
    """


class MissingTaxYearError(ConfigurationError):
    """Raised when no federal constants exist for the requested tax year."""

    def __init__(self, year: int):
        self.year = year
        super().__init__(f"Federal tax constants not available for tax year {year}")


class MissingStateRulesError(ConfigurationError):
    """Raised when no ruleset exists for a (year, state) pair."""

    def __init__(self, state: str, year: int):
        self.state = state
        self.year = year
        super().__init__(f"State rules not available for {state} ({year})")


class MissingBracketsError(ConfigurationError):
    """Raised when a jurisdiction expected to tax income has no bracket table."""

    def __init__(self, jurisdiction: str, year: int, filing_status: str):
        self.jurisdiction = jurisdiction
        self.year = year
        self.filing_status = filing_status
        super().__init__(
            f"Missing brackets/flat rate for {jurisdiction} ({year}, {filing_status})"
        )


class InvalidRuleSetError(ConfigurationError):
    """Raised when constants or rules fail validation at load time."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Invalid tax rules from {source}: {message}")


class DataValidationError(TaxComputationError):
    """Raised when input data fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class PremiumRequiredError(TaxComputationError):
    """Raised when a non-premium caller supplies premium-only inputs."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Premium required for: {', '.join(fields)}")
