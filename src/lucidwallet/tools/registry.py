#!/usr/bin/env python
# lucidwallet/tools/registry.py

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from lucidwallet.tools.base import ToolBase

logger = logging.getLogger(__name__)

# ============================================================
# Errors
# ============================================================


class ToolError(Exception):
    """
    Normalized tool failure.

    `code` is an optional structured error kind (e.g. "insufficient_balance",
    "nonce_conflict"). Handlers that know what went wrong should set it;
    the executor only falls back to reading `reason` when it is absent.
    """

    def __init__(
        self,
        tool_name: str,
        reason: str,
        original_exc: Optional[Exception] = None,
        *,
        code: Optional[str] = None,
    ):
        self.tool_name = tool_name
        self.reason = reason
        self.original_exc = original_exc
        self.code = code
        super().__init__(f"ToolError({tool_name}): {reason}")


class ToolNotFoundError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(tool_name, f"tool_not_found:{tool_name}")


# ============================================================
# Registry
# ============================================================


class ToolRegistry:
    """
    Name-keyed table of capability descriptors.

    One registry per engine instance; nothing here is process-global.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, "ToolBase"] = {}

    def register(self, tool: "ToolBase") -> None:
        name = tool.name
        if not name:
            raise ValueError("Tool registration requires 'name'")
        if name in self._tools:
            logger.warning("Tool overwritten: %s", name)
        self._tools[name] = tool
        logger.debug("Tool registered: %s", name)

    def get(self, name: str) -> "ToolBase":
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def has(self, name: str) -> bool:
        return name in self._tools

    def list(self) -> List[str]:
        return list(self._tools.keys())

    def schemas(self) -> List[Dict]:
        return [tool.schema() for tool in self._tools.values()]
