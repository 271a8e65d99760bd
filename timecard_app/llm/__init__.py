"""LLM module for time card extraction using cloud or local vision models."""

from .client import LLMClient, LLMClientError
from .parser import PageParseResult, ResponseParser

__all__ = ["LLMClient", "LLMClientError", "PageParseResult", "ResponseParser"]
