"""
Custom exception hierarchy for the identification engine.

All application exceptions inherit from TaxonKeyError.

The scoring engine itself never raises for a well-typed evaluation request;
these exceptions cover the surfaces around it (configuration, matrix
provisioning, API lookups).
"""


class TaxonKeyError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TaxonKeyError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Matrix Errors
# =============================================================================


class MatrixError(TaxonKeyError):
    """Base for trait matrix errors."""

    pass


class MatrixNotLoadedError(MatrixError):
    """No trait matrix has been supplied to the engine."""

    pass


class MatrixLoadError(MatrixError):
    """Trait matrix document could not be read or parsed."""

    pass


class TaxonNotFoundError(MatrixError):
    """Taxon does not exist in the loaded matrix."""

    pass


# =============================================================================
# Request Errors
# =============================================================================


class ValidationError(TaxonKeyError):
    """Input validation failed."""

    pass
