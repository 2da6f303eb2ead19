"""
Read-only view over the X home page markup.

Wraps a BeautifulSoup tree and exposes only the lookups the transaction id
pipeline needs: the raw markup, attribute lookup by CSS selector, and
element lookup by id prefix.
"""

from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag


class HomePageDocument:
    """Parsed home page markup."""

    def __init__(self, source: Union[str, bytes, BeautifulSoup], parser: str = "html.parser"):
        """
        Build a document from markup text or an existing soup.

        Args:
            source: Raw HTML (str or bytes) or an already parsed BeautifulSoup
            parser: BeautifulSoup tree builder used for raw markup
        """
        if isinstance(source, BeautifulSoup):
            self.soup = source
            self._markup = str(source)
        else:
            if isinstance(source, bytes):
                source = source.decode("utf-8", errors="replace")
            self.soup = BeautifulSoup(source, parser)
            self._markup = source

    @property
    def markup(self) -> str:
        """Full serialized markup."""
        return self._markup

    def get_attribute(self, selector: str, attribute: str) -> Optional[str]:
        """
        Read an attribute from the first element matching a CSS selector.

        Returns:
            Attribute value, or None if no element or attribute matches
        """
        element = self.soup.select_one(selector)
        if element is None:
            return None
        value = element.get(attribute)
        if isinstance(value, list):
            value = " ".join(value)
        return value

    def select_by_id_prefix(self, prefix: str) -> List[Tag]:
        """Elements whose id starts with ``prefix``, in document order."""
        return self.soup.select(f"[id^='{prefix}']")

    @staticmethod
    def element_children(element: Tag) -> List[Tag]:
        """Direct element children, skipping text and comment nodes."""
        return element.find_all(True, recursive=False)
