"""Custom exceptions for the slot lease panel."""


class LeaseError(Exception):
    """Base exception for all slot lease errors."""


class InvalidSlotError(LeaseError):
    """Slot number outside the configured range or an unparseable menu choice."""


class LeasePolicyError(LeaseError):
    """Release operation not offered under the configured release policy."""


class PersistenceError(LeaseError):
    """Slot store or metadata store failure."""


class DisplayError(LeaseError):
    """Display surface rejected a create or update."""


class ConfigError(LeaseError):
    """Missing or invalid configuration."""
