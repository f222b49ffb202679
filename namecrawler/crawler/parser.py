"""
Parser for autocomplete API response bodies.
"""

import json
import logging
from typing import Any, List, Optional, Union


class SuggestionParser:
    """
    Extracts the ordered suggestion list from an autocomplete response.

    The service answers with a JSON object carrying a ``results`` array of
    strings. A missing or malformed field is not an error: it yields an
    empty list so the traversal can carry on.
    """

    def __init__(self, results_field: str = "results"):
        self.results_field = results_field
        self.logger = logging.getLogger(__name__)

    def parse(self, body: Optional[Union[bytes, str]]) -> List[str]:
        """
        Parse a raw response body into a list of suggestions.

        Bytes that do not decode (UnicodeDecodeError is a ValueError) are
        treated like any other malformed body.
        """
        if not body:
            return []

        try:
            data = json.loads(body)
        except ValueError as e:
            self.logger.debug(f"Response body is not JSON: {e}")
            return []

        return self.extract(data)

    def extract(self, data: Any) -> List[str]:
        """Pull suggestions out of already-decoded JSON."""
        if not isinstance(data, dict):
            return []

        results = data.get(self.results_field)
        if not isinstance(results, list):
            if results is not None:
                self.logger.debug(f"Ignoring non-list '{self.results_field}' field")
            return []

        # Skip anything that is not a name
        return [item for item in results if isinstance(item, str)]
