"""Domain-specific exceptions for the jewellery retail core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from JewelCoreError for easy catching.
"""


class JewelCoreError(Exception):
    """Base exception for all jewellery retail core errors.

    Users can catch this exception to handle any error raised by the
    pricing engine, the report aggregator or the configuration layer.
    """

    pass


class ConfigError(JewelCoreError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid store settings are provided (e.g. a negative GST rate)
    - The configured timezone is unknown
    - The settings file cannot be loaded or parsed
    """

    pass


class InvalidInputError(JewelCoreError, ValueError):
    """Raised when the pricing engine receives an invalid amount.

    Negative or non-finite weights, metal rates, making charges or GST
    rates, and line quantities below one, are rejected before anything is
    computed. Values are never clamped.
    """

    pass


class DataQualityError(JewelCoreError):
    """Raised when an input table cannot be aggregated.

    This exception is raised when a required column is missing from an
    invoices, invoice lines, customers or items table. Missing related rows
    (e.g. a line whose item was deleted) are not errors and never raise this.
    """

    pass
