"""Exceptions raised by the downloader.

Per-unit failures (transfer, decompression, conversion) are caught by the
orchestrator and reported as outcomes; configuration errors and missing
tools stop the run before any download starts.
"""


class GoodError(Exception):
    """Base class for every error raised by gnss_good."""


class ConfigError(GoodError):
    """Raised when a configuration or site-list file cannot be opened or parsed."""
    def __init__(self, message="Invalid GOOD configuration"):
        super().__init__(message)


class UnresolvableRequestError(ConfigError):
    """Raised when a product request has no naming template or an unknown analysis center."""
    def __init__(self, message="No naming template for the requested product"):
        super().__init__(message)


class ToolNotFoundError(FileNotFoundError):
    """Raised when an external binary (wget, gzip, crx2rnx) is not on the search path."""
    def __init__(
        self,
        tool: str,
        message="\nExternal tool '{tool}' not found. Hint: install it, add it to PATH, or set '3partyDir = 1 <dir>' / $GOOD_3PARTY_DIR",
    ):
        self.tool = tool
        super().__init__(message.format(tool=tool))


class TransferError(GoodError):
    """Raised when the downloader exits abnormally or times out."""
    def __init__(self, message="External download failed"):
        super().__init__(message)


class DecompressError(GoodError):
    """Raised when the decompressor produced no output file."""
    def __init__(self, message="Decompression produced no output"):
        super().__init__(message)


class ConvertError(GoodError):
    """Raised when the Hatanaka converter produced no observation file."""
    def __init__(self, message="crx2rnx produced no observation file"):
        super().__init__(message)
