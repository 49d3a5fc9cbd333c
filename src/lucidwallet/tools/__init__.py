from .registry import ToolError, ToolNotFoundError, ToolRegistry
from .base import SignerProtocol, ToolBase, ToolContext
from .stubs import (
    BuildTxTool,
    ChainReadTool,
    QuoteRouteTool,
    SendTxTool,
    SignTxTool,
    SimulateTransferTool,
    SimulateTxTool,
    WaitConfirmTool,
    default_registry,
    default_tools,
)

__all__ = [
    "ToolError",
    "ToolNotFoundError",
    "ToolRegistry",
    "SignerProtocol",
    "ToolBase",
    "ToolContext",
    "BuildTxTool",
    "ChainReadTool",
    "QuoteRouteTool",
    "SendTxTool",
    "SignTxTool",
    "SimulateTransferTool",
    "SimulateTxTool",
    "WaitConfirmTool",
    "default_registry",
    "default_tools",
]
