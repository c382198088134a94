"""contract_sdk.version — package version.

`__version__` is the installed distribution's version. A source checkout that
was never installed reports FORMAT_VERSION with a "+src" local tag.

FORMAT_VERSION is bumped whenever the persisted record layout or the key
derivation changes; readers of a store compare it, not the package version.
"""

from __future__ import annotations

import os
from importlib import metadata as importlib_metadata

FORMAT_VERSION = "0.1.0"

DIST_NAME = "contract-sdk"


def _resolve() -> str:
    override = os.getenv("CONTRACT_SDK_VERSION")
    if override:
        return override
    try:
        return importlib_metadata.version(DIST_NAME)
    except importlib_metadata.PackageNotFoundError:
        return f"{FORMAT_VERSION}+src"


__version__ = _resolve()

__all__ = ["__version__", "FORMAT_VERSION", "DIST_NAME"]
