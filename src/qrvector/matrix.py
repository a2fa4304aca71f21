# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import logging
from collections.abc import Sequence
from typing import cast, final

import qrcode
from qrcode.constants import (
    ERROR_CORRECT_H,
    ERROR_CORRECT_L,
    ERROR_CORRECT_M,
    ERROR_CORRECT_Q,
)
from qrcode.exceptions import DataOverflowError

from .errors import EncodingError

logger = logging.getLogger(__name__)

ECC_LEVELS = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


@final
class BitMatrix:
    """
    Boolean module grid of a QR symbol, addressed as ``get(x, y)`` with ``x`` the
    column and ``y`` the row. ``True`` is a dark module.
    """

    def __init__(self, rows: Sequence[Sequence[bool]]) -> None:
        self._rows = [tuple(bool(v) for v in row) for row in rows]
        self.height = len(self._rows)
        self.width = len(self._rows[0]) if self._rows else 0
        assert all(len(row) == self.width for row in self._rows), "ragged matrix"

    def get(self, x: int, y: int) -> bool:
        return self._rows[y][x]

    @property
    def rows(self) -> list[tuple[bool, ...]]:
        return list(self._rows)

    def dark_count(self) -> int:
        return sum(sum(row) for row in self._rows)

    def __repr__(self) -> str:
        return f"BitMatrix({self.width}x{self.height}, dark={self.dark_count()})"


def _make_matrix(payload: str, **hints: int) -> BitMatrix:
    qr = qrcode.QRCode(**hints)
    qr.add_data(payload)
    qr.make(fit=True)
    # `get_matrix` includes the quiet zone (border) around the symbol.
    return BitMatrix(cast(list[list[bool]], qr.get_matrix()))


def _hints(ecc_level: str, margin: int | None) -> dict[str, int]:
    level = ECC_LEVELS.get(ecc_level.upper())
    if level is None:
        raise ValueError(f"unknown error correction level {ecc_level!r}")
    hints = {"error_correction": level}
    if margin is not None:
        if margin < 0:
            raise ValueError(f"negative margin {margin}")
        hints["border"] = margin
    return hints


def encode(payload: str, ecc_level: str = "M", margin: int | None = None) -> BitMatrix:
    """
    Encode ``payload`` as a QR symbol with ``margin`` quiet-zone modules.

    The hinted call (error correction level and margin) is tried first. If it
    fails, the encoder is called again with its own defaults, and only if that
    fails too is :class:`EncodingError` raised.
    """
    try:
        return _make_matrix(payload, **_hints(ecc_level, margin))
    except (DataOverflowError, ValueError) as hint_error:
        logger.warning("Encoding with hints failed, retrying without: %s", hint_error)
        try:
            return _make_matrix(payload)
        except (DataOverflowError, ValueError) as e:
            raise EncodingError(
                f"Cannot encode payload of {len(payload)} characters: {e}"
            ) from e
