"""Custom exceptions for the price comparison engine"""


class PriceComparisonError(Exception):
    """Base exception for price comparison errors"""
    pass


class InvalidQueryError(PriceComparisonError):
    """Request is missing a required field or carries malformed values"""
    pass


class ItemNotFoundError(PriceComparisonError):
    """No listing matched the requested item"""
    pass


class StoreQueryError(PriceComparisonError):
    """Reading from the listing store failed"""
    pass


class InvalidListingError(PriceComparisonError):
    """Listing or rating data violates a model invariant"""
    pass
