class InventoryError(Exception):
    """Base class for every error raised by the inventory tracker."""


class ValidationError(InventoryError):
    """An input broke a data-model constraint (the message names which one)."""


class PersistenceError(InventoryError):
    """A collection could not be read from or written to the store."""


class NoDataToExport(InventoryError):
    """An export was requested for an empty record set."""
