# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Default generation settings, overridable through ``QRVECTOR_*`` variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    canvas_size: int = 300
    foreground_color: str = "#000000"
    background_color: str = "#FFFFFF"
    margin_modules: int = 4

    # Embedded raster for the hybrid SVG output
    raster_resolution: int = 1024
    jpeg_quality: int = 95

    # One of L, M, Q, H
    ecc_level: str = "M"

    log_level: str = "info"

    model_config = {
        "env_prefix": "QRVECTOR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
