from abc import ABC, abstractmethod
from typing import Any, Dict


class IImageFetcher(ABC):
    """Interface for retrieving the raw bytes of a symbol or icon image."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """
        Return the bytes stored at *url*.
        Implementations raise SymbolFetchError when the resource cannot be retrieved.
        """
        pass


class IStyleParser(ABC):
    """Interface for an external encoding of the structured style model."""

    @abstractmethod
    async def read_style(self, encoded: Any) -> Dict[str, Any]:
        """
        Decode *encoded* into a structured ``{format: "geostyler", body, ...}`` style.
        Implementations raise StyleParseError for input they cannot decode.
        """
        pass

    @abstractmethod
    async def write_style(self, style: Dict[str, Any]) -> str:
        """Encode a structured style (or its body) into the external format."""
        pass
