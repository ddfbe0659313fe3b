"""
Packed LED brightness buffer with dirty tracking.

Storage Layout
==============

Brightness levels are 4-bit values (0-15). Eight of them share one 32-bit
word, lowest nibble first, so element ``i`` lives in word ``i // 8`` at bit
offset ``(i % 8) * 4``. A parallel bitset marks which elements changed since
the last transmit, 32 elements per word::

    element:   7    6    5    4    3    2    1    0
             ┌────┬────┬────┬────┬────┬────┬────┬────┐
    word 0   │ 0  │ 0  │ 0  │ 0  │ F  │ 0  │ A  │ 0  │   = 0x0000F0A0
             └────┴────┴────┴────┴────┴────┴────┴────┘
    dirty 0  ...0000 0000 0000 0000 0000 0000 0000 1010   (elements 1, 3)

A 16x8 surface therefore needs 16 words of levels and 4 words of dirty
bits. Both arrays are numpy ``uint32`` so whole-buffer operations (fill,
dirty scan, hex serialisation) are vectorised rather than per element.

Invariants
----------

- ``get(i)`` returns the last clamped value passed to ``set(i, ...)``
- Setting an element to the value it already holds never touches the dirty set
- Dirty bits are only cleared explicitly (``clear_dirty``), i.e. on transmit
- Bits beyond ``element_count`` in the last word are always zero
"""

import logging
import string

import numpy as np

from oscsurface.exceptions import MalformedMessageError

logger = logging.getLogger(__name__)

LEVELS_PER_WORD = 8
BITS_PER_LEVEL = 4
DIRTY_BITS_PER_WORD = 32
MAX_LEVEL = 15

_WORD_MASK = 0xFFFFFFFF
_NIBBLE_SHIFTS = np.arange(0, 32, BITS_PER_LEVEL, dtype=np.uint32)
_HEX_DIGITS = np.frombuffer(b"0123456789ABCDEF", dtype=np.uint8)
_HEX_CHARS = frozenset(string.hexdigits)


def clamp_level(value: int) -> int:
    """Clamp a brightness value into 0-15."""
    return max(0, min(MAX_LEVEL, int(value)))


class PackedBuffer:
    """
    Fixed-size buffer of 4-bit brightness levels.

    Indices are 0-based. Out-of-range reads return 0 and out-of-range writes
    are ignored, the same way hardware drops coordinates it cannot display.
    """

    def __init__(self, element_count: int):
        """
        Initialize an all-zero buffer.

        Args:
            element_count: Number of addressable elements
        """
        if element_count < 0:
            raise ValueError(f"element_count must be >= 0, got {element_count}")

        self.element_count = element_count
        self._word_count = -(-element_count // LEVELS_PER_WORD)
        self._dirty_word_count = -(-element_count // DIRTY_BITS_PER_WORD)

        self._words = np.zeros(self._word_count, dtype=np.uint32)
        self._committed = np.zeros(self._word_count, dtype=np.uint32)
        self._dirty = np.zeros(self._dirty_word_count, dtype=np.uint32)

    def __len__(self) -> int:
        return self.element_count

    def __repr__(self) -> str:
        return f"PackedBuffer(element_count={self.element_count}, dirty={self.dirty_count()})"

    # =================================================================
    # Element access
    # =================================================================

    def _in_range(self, index: int) -> bool:
        return 0 <= index < self.element_count

    def get(self, index: int) -> int:
        """Get the level at index (0 when out of range)."""
        if not self._in_range(index):
            return 0
        shift = (index % LEVELS_PER_WORD) * BITS_PER_LEVEL
        return (int(self._words[index // LEVELS_PER_WORD]) >> shift) & MAX_LEVEL

    def set(self, index: int, value: int) -> bool:
        """
        Set the level at index.

        Args:
            index: Element index
            value: Brightness, clamped to 0-15

        Returns:
            True if the stored value changed (and the element is now dirty)
        """
        if not self._in_range(index):
            return False

        value = clamp_level(value)
        word_index = index // LEVELS_PER_WORD
        shift = (index % LEVELS_PER_WORD) * BITS_PER_LEVEL
        word = int(self._words[word_index])

        if (word >> shift) & MAX_LEVEL == value:
            return False

        word = (word & ~(MAX_LEVEL << shift)) | (value << shift)
        self._words[word_index] = word & _WORD_MASK
        self._mark_dirty(index)
        return True

    def set_all(self, value: int) -> None:
        """Set every element to value and mark everything dirty."""
        value = clamp_level(value)
        # 0x11111111 * v repeats the nibble across the word
        self._words.fill(value * 0x11111111)
        self._mask_tail(self._words, self.element_count % LEVELS_PER_WORD * BITS_PER_LEVEL)
        self.mark_all_dirty()

    def clear(self) -> None:
        """Zero every element and mark everything dirty."""
        self._words.fill(0)
        self.mark_all_dirty()

    def levels(self, start: int = 0, count: int | None = None) -> list[int]:
        """
        Read a run of levels as plain ints.

        Args:
            start: First element index
            count: Number of elements (default: up to the end)

        Returns:
            List of levels, clipped to the buffer bounds
        """
        start = max(0, start)
        stop = self.element_count if count is None else min(self.element_count, start + count)
        if start >= stop:
            return []
        return self._unpack()[start:stop].tolist()

    # =================================================================
    # Dirty tracking
    # =================================================================

    def _mark_dirty(self, index: int) -> None:
        word_index = index // DIRTY_BITS_PER_WORD
        bit = 1 << (index % DIRTY_BITS_PER_WORD)
        self._dirty[word_index] = int(self._dirty[word_index]) | bit

    def is_dirty(self, index: int) -> bool:
        """Check whether a single element changed since the last transmit."""
        if not self._in_range(index):
            return False
        bit = 1 << (index % DIRTY_BITS_PER_WORD)
        return bool(int(self._dirty[index // DIRTY_BITS_PER_WORD]) & bit)

    def has_dirty(self) -> bool:
        """True if any element changed since the last transmit."""
        return bool(self._dirty.any())

    def dirty_count(self) -> int:
        """Number of dirty elements."""
        if self._dirty_word_count == 0:
            return 0
        return int(np.unpackbits(self._dirty.view(np.uint8)).sum())

    def clear_dirty(self) -> None:
        """Clear every dirty bit (called after a transmit)."""
        self._dirty.fill(0)

    def mark_all_dirty(self) -> None:
        """Mark every element dirty (forces a full transmit)."""
        self._dirty.fill(_WORD_MASK)
        self._mask_tail(self._dirty, self.element_count % DIRTY_BITS_PER_WORD)

    # =================================================================
    # Committed snapshot
    # =================================================================

    def commit(self) -> None:
        """Copy the current state into the committed snapshot."""
        np.copyto(self._committed, self._words)

    def committed_value(self, index: int) -> int:
        """Level at index as of the last commit (0 when out of range)."""
        if not self._in_range(index):
            return 0
        shift = (index % LEVELS_PER_WORD) * BITS_PER_LEVEL
        return (int(self._committed[index // LEVELS_PER_WORD]) >> shift) & MAX_LEVEL

    # =================================================================
    # Hex serialisation
    # =================================================================

    def to_hex_string(self) -> str:
        """One uppercase hex digit per element, in index order."""
        if self.element_count == 0:
            return ""
        return _HEX_DIGITS[self._unpack()].tobytes().decode("ascii")

    def from_hex_string(self, payload: str) -> None:
        """
        Load levels from a hex string through ``set`` (so dirty bits follow).

        Shorter strings update a prefix of the buffer; longer strings are
        truncated to ``element_count``.

        Raises:
            MalformedMessageError: If payload contains non-hex characters.
                The buffer is left untouched.
        """
        payload = payload[: self.element_count]
        bad = [c for c in payload if c not in _HEX_CHARS]
        if bad:
            raise MalformedMessageError("hex", (payload,), f"non-hex characters {''.join(bad)!r}")

        for index, char in enumerate(payload):
            self.set(index, int(char, 16))

    # =================================================================
    # Internals
    # =================================================================

    def _unpack(self) -> np.ndarray:
        """Expand packed words into one uint32 per element."""
        nibbles = (self._words[:, None] >> _NIBBLE_SHIFTS) & np.uint32(MAX_LEVEL)
        return nibbles.reshape(-1)[: self.element_count]

    @staticmethod
    def _mask_tail(words: np.ndarray, used_bits: int) -> None:
        """Zero the unused high bits of the last word (used_bits == 0 means full)."""
        if used_bits and len(words):
            words[-1] = int(words[-1]) & ((1 << used_bits) - 1)

    def stats(self) -> dict[str, int]:
        """Memory footprint summary."""
        return {
            "element_count": self.element_count,
            "level_words": self._word_count,
            "dirty_words": self._dirty_word_count,
            "level_bytes": int(self._words.nbytes),
            "dirty_bytes": int(self._dirty.nbytes),
            "snapshot_bytes": int(self._committed.nbytes),
            "dirty_elements": self.dirty_count(),
        }
