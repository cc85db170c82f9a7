"""Error types raised by the sync pipeline."""


class H1VaultError(Exception):
    """Base class for all h1vault errors."""


class ConfigurationError(H1VaultError):
    """Username or API token missing; raised before any network call."""


class FetchError(H1VaultError):
    """Network failure or malformed response while paging the HackerOne API."""


class ReconciliationError(H1VaultError):
    """
    One or more notes could not be written to the vault.

    Raised after every note has been attempted; `failures` holds
    (report_id, error message) pairs and `counters` the outcome of the pass.
    """

    def __init__(self, message, failures=None, counters=None):
        super().__init__(message)
        self.failures = failures or []
        self.counters = counters or {}
