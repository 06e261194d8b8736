"""The address review view: items shown when confirming an address."""

from __future__ import annotations

from dataclasses import dataclass, field

from .chain_config import AddressEncoding

HARDENED = 0x80000000
DEFAULT_PAGE_SIZE = 39


def bip32_to_str(path) -> str:
    """Render a BIP32 path such as ``44'/118'/0'/0/0``."""
    parts = []
    for element in path:
        if not 0 <= element <= 0xFFFFFFFF:
            raise ValueError(f"path element out of range: {element}")
        value = element & 0x7FFFFFFF
        parts.append(f"{value}'" if element & HARDENED else str(value))
    if not parts:
        raise ValueError("empty path")
    return "/".join(parts)


def page_string(text: str, page_idx: int, page_size: int) -> tuple[str, int]:
    """Return the ``page_idx``-th chunk of ``text`` and the number of pages.

    Pages hold ``page_size`` characters. An empty text has no pages; a page
    index beyond the last page yields an empty chunk.
    """
    if page_size <= 0 or not text:
        return "", 0
    page_count = -(-len(text) // page_size)
    if not 0 <= page_idx < page_count:
        return "", page_count
    start = page_idx * page_size
    return text[start:start + page_size], page_count


@dataclass
class AddressView:
    """Items of the address review screen: the address and, if shown, its path."""

    address: str
    hd_path: list[int] = field(default_factory=list)
    encoding: AddressEncoding = AddressEncoding.BECH32_COSMOS
    expert: bool = False

    def _shows_path(self) -> bool:
        return self.expert or self.encoding is not AddressEncoding.BECH32_COSMOS

    def num_items(self) -> int:
        """Number of items to display."""
        return 2 if self._shows_path() else 1

    def item(self, display_idx: int, page_idx: int = 0,
             page_size: int = DEFAULT_PAGE_SIZE) -> tuple[str, str, int]:
        """Return ``(key, value page, page count)`` for an item.

        Raises :class:`IndexError` when the item does not exist.
        """
        if display_idx == 0:
            value, count = page_string(self.address, page_idx, page_size)
            return "Address", value, count
        if display_idx == 1 and self._shows_path():
            value, count = page_string(bip32_to_str(self.hd_path), page_idx, page_size)
            return "Path", value, count
        raise IndexError(f"no item at index {display_idx}")