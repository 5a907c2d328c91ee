"""RuntimeScout exception hierarchy.

All public exceptions inherit from RuntimeScoutError, giving callers a single
base class to catch when they want to handle any RuntimeScout-specific failure
without swallowing unrelated errors.

"Not found" is never an exception: resolution returns ``None`` when no
locator recognizes an environment.
"""


class RuntimeScoutError(Exception):
    """Base exception for all RuntimeScout errors."""


class ProbeError(RuntimeScoutError):
    """Raised when probing a single environment entry fails.

    Covers I/O errors while reading an executable or its install
    directory and failures of the interpreter subprocess probe. During
    iteration these are recovered locally; only resolution surfaces them.
    """


class SourceUnavailableError(RuntimeScoutError):
    """Raised when a whole locator cannot start.

    Typically its configured root directory does not exist. Locators
    catch this themselves and behave as an empty source.
    """


class DisposedError(RuntimeScoutError):
    """Raised when a locator or engine is used after ``dispose()``."""


class QueryError(RuntimeScoutError, ValueError):
    """Raised for a malformed query or an unusable environment identity."""


class ConfigError(RuntimeScoutError):
    """Raised when the configuration file is unreadable or invalid."""
