#!/usr/bin/env python
# lucidwallet/tools/base.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Type

from pydantic import BaseModel, ValidationError  # pyright: ignore[reportMissingImports]

from lucidwallet.tools.registry import ToolError

logger = logging.getLogger(__name__)


class SignerProtocol(Protocol):
    async def sign(self, request: Any) -> Any: ...


@dataclass(frozen=True)
class ToolContext:
    chain: str
    request_id: str
    signer: Optional[SignerProtocol] = None


class ToolBase:
    """
    Base class for capability tools.

    This class standardizes:
    - Input / output schema validation
    - Error normalization
    - Timing & logging

    Concrete tools should set the class attributes below and implement
    `async run(payload, context)`. Stub and live-chain implementations of the
    same capability are interchangeable as long as they keep the models.
    """

    #: Unique tool name (must be overridden)
    name: ClassVar[str] = ""

    #: Optional human-readable description
    description: ClassVar[str] = ""

    input_model: ClassVar[Type[BaseModel]]
    output_model: ClassVar[Type[BaseModel]]

    cost_estimate: ClassVar[str] = "low"  # low | medium | high
    requires_signature: ClassVar[bool] = False
    #: Informational only; the executor never retries on its own.
    is_retryable: ClassVar[bool] = True
    required_permissions: ClassVar[List[str]] = []

    # ------------------------------------------------------------------
    # Core execution wrapper (called by the execution engine)
    # ------------------------------------------------------------------

    async def execute(self, raw_input: Dict[str, Any], context: ToolContext) -> BaseModel:
        """
        Validate input, run the handler, validate output.

        DO NOT override this. Override `run()` instead.
        """
        if not self.name:
            raise ToolError("<unknown>", "tool_name_not_defined")

        start = time.perf_counter()
        try:
            payload = self.input_model.model_validate(raw_input)
            raw_output = await self.run(payload, context)
            if isinstance(raw_output, BaseModel):
                raw_output = raw_output.model_dump()
            return self.output_model.model_validate(raw_output)

        except ToolError:
            raise

        except ValidationError as exc:
            logger.error("Tool '%s' schema validation failed: %s", self.name, exc)
            raise ToolError(self.name, f"schema_validation_failed: {exc}", exc)

        except Exception as exc:
            logger.error("Tool '%s' execution failed: %s", self.name, exc, exc_info=True)
            raise ToolError(self.name, str(exc), exc, code=getattr(exc, "code", None))

        finally:
            elapsed = time.perf_counter() - start
            logger.debug("Tool '%s' executed in %.3fs", self.name, elapsed)

    # ------------------------------------------------------------------
    # To be implemented by concrete tools
    # ------------------------------------------------------------------

    async def run(self, payload: Any, context: ToolContext) -> Any:
        raise NotImplementedError("Tool must implement run()")

    # ------------------------------------------------------------------
    # Schema & introspection
    # ------------------------------------------------------------------

    def schema(self) -> Dict[str, Any]:
        if not self.name:
            raise ValueError("Tool schema requires 'name'")
        return {
            "name": self.name,
            "description": self.description or "",
            "parameters": self.input_model.model_json_schema(),
            "returns": self.output_model.model_json_schema(),
            "cost_estimate": self.cost_estimate,
            "requires_signature": self.requires_signature,
            "is_retryable": self.is_retryable,
            "required_permissions": list(self.required_permissions),
        }
