# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.


class QrVectorError(Exception):
    """Base class of all errors raised by qrvector."""


class EncodingError(QrVectorError):
    """The payload could not be encoded as a QR symbol."""


class InvalidMatrixError(QrVectorError):
    """
    The module matrix (or the rectangles derived from it) is not a uniform square
    grid.
    """
