"""Factory for creating scanning engines from tool configuration."""

from ..config import ToolConfig
from .adapter import CompatScanAdapter
from .base import ScanEngine
from .command import CommandScanEngine


def create_engine(config: ToolConfig) -> ScanEngine:
    """Create the external-command engine described by ``config``."""
    return CommandScanEngine(command=config.scanner_command,
                             timeout=config.scanner_timeout)


def create_adapter(config: ToolConfig) -> CompatScanAdapter:
    """Create a CompatScanAdapter with the configured engine and flags."""
    return CompatScanAdapter(create_engine(config), config=config.scanner)
