from .llm_config import LLMConfig

__all__ = ["LLMConfig"]
