"""
LLM response parser for time card extraction.

Handles:
- JSON extraction from LLM responses (fenced, bare array, single object)
- Filtering of non-object items
- Error recovery per page
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class PageParseResult:
    """Records decoded from one page's LLM response."""
    page_name: str
    records: list[dict] = field(default_factory=list)
    raw_response: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class ResponseParser:
    """
    Parses LLM responses into raw record dictionaries.

    The records are left untyped; the sanitizer decides what is usable.
    """

    def parse_response(self, response: str, page_name: str = "") -> PageParseResult:
        """
        Parse one LLM response.

        Args:
            response: Raw LLM response string
            page_name: Page the response belongs to

        Returns:
            PageParseResult with decoded records or errors
        """
        result = PageParseResult(page_name=page_name, raw_response=response or "")

        json_str = self._extract_json(result.raw_response)
        if json_str is None:
            result.errors.append("No valid JSON found in response")
            logger.error(f"No JSON in response for page '{page_name}': {result.raw_response[:200]}")
            return result

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            result.errors.append(f"JSON parse error: {str(e)}")
            logger.error(f"Failed to parse JSON for page '{page_name}': {json_str[:200]}")
            return result

        if isinstance(data, dict):
            wrapped = self._wrapped_records(data)
            if wrapped is not None:
                result.warnings.append("Response wrapped the records in an object")
                data = wrapped
            else:
                result.warnings.append("Response was a single object, expected an array")
                data = [data]
        elif not isinstance(data, list):
            result.errors.append(f"Response was {type(data).__name__}, expected an array")
            return result

        for index, item in enumerate(data):
            if isinstance(item, dict):
                result.records.append(item)
            else:
                result.warnings.append(f"Skipped item #{index}: not an object")

        return result

    @staticmethod
    def _wrapped_records(data: dict) -> Optional[list]:
        """
        Records nested in a wrapper object, e.g. {"records": [...]}.

        JSON mode in Ollama forces an object at the root, so models wrap the
        array. A dict that looks like a record itself is never unwrapped.
        """
        if "type" in data or "headers" in data:
            return None
        lists = [
            value for value in data.values()
            if isinstance(value, list) and value and all(isinstance(item, dict) for item in value)
        ]
        return lists[0] if len(lists) == 1 else None

    def _extract_json(self, response: str) -> Optional[str]:
        """Extract the JSON array (or object) from a response string."""
        text = response.strip()

        # Markdown code block
        match = re.search(r"```(?:json)?\s*([\[{][\s\S]*?[\]}])\s*```", text)
        if match:
            text = match.group(1)

        array_start = text.find("[")
        array_end = text.rfind("]")
        if array_start != -1 and array_end > array_start:
            candidate = text[array_start:array_end + 1]
            if self._is_json(candidate):
                return candidate

        object_start = text.find("{")
        object_end = text.rfind("}")
        if object_start != -1 and object_end > object_start:
            candidate = text[object_start:object_end + 1]
            if self._is_json(candidate):
                return candidate

        return None

    @staticmethod
    def _is_json(text: str) -> bool:
        try:
            json.loads(text)
            return True
        except json.JSONDecodeError:
            return False


def parse_llm_response(response: str, page_name: str = "") -> PageParseResult:
    """
    Convenience function to parse an LLM response.

    Args:
        response: Raw LLM response
        page_name: Page the response belongs to

    Returns:
        PageParseResult with decoded records
    """
    parser = ResponseParser()
    return parser.parse_response(response, page_name)
