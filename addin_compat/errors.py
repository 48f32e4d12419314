"""Exception types raised by addin-compat."""


class AddinCompatError(Exception):
    """Base class for all addin-compat errors."""


class ConfigurationError(AddinCompatError, ValueError):
    """Invalid arguments, missing directories or files, bad config.

    Raised before any scan starts. The CLI maps it to exit code -1.
    """


class ScanError(AddinCompatError, RuntimeError):
    """The scanning engine failed for one target."""


class BaselineError(ScanError):
    """The host application baseline could not be generated or read.

    Fatal for a run: no addin is checked without a baseline.
    """
