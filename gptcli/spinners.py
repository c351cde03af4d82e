"""Spinner catalog: named glyph sequences with a tick interval.

The catalog uses the cli-spinners JSON layout, ``{"dots": {"interval": 80,
"frames": [...]}, ...}``. It is downloaded once and cached in the config
directory. Every spinner is validated when the catalog is loaded so a bad
entry fails at startup instead of in the middle of a turn.
"""

import json
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from gptcli.config import SPINNERS_FILE, SPINNERS_URL
from gptcli.errors import SpinnerCatalogError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpinnerSpec:
    """One animated spinner.

    Attributes:
        interval_ms: Milliseconds between frames; must be positive.
        frames: Glyph strings shown in order; must not be empty.

    """

    interval_ms: int
    frames: tuple[str, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.interval_ms, int) or self.interval_ms <= 0:
            raise SpinnerCatalogError(f"Spinner interval must be a positive integer, got {self.interval_ms!r}")
        if not self.frames:
            raise SpinnerCatalogError("Spinner has no frames")


SpinnerCatalog = dict[str, SpinnerSpec]


def parse_catalog(data: Mapping[str, Any]) -> SpinnerCatalog:
    """Build a catalog from decoded cli-spinners JSON.

    Args:
        data: Mapping of spinner name to ``{"interval": int, "frames": [str]}``.

    Returns:
        Mapping of spinner name to SpinnerSpec.

    Raises:
        SpinnerCatalogError: If the catalog is empty or any entry is invalid.

    """
    if not isinstance(data, Mapping) or not data:
        raise SpinnerCatalogError("Spinner catalog is empty")

    catalog: SpinnerCatalog = {}
    for name, entry in data.items():
        try:
            interval = entry["interval"]
            frames = tuple(str(frame) for frame in entry["frames"])
        except (KeyError, TypeError) as e:
            raise SpinnerCatalogError(f"Spinner '{name}' is malformed: {e}") from e
        try:
            catalog[name] = SpinnerSpec(interval_ms=interval, frames=frames)
        except SpinnerCatalogError as e:
            raise SpinnerCatalogError(f"Spinner '{name}': {e}") from e
    return catalog


def fetch_catalog(url: str = SPINNERS_URL, timeout: float = 10.0) -> dict[str, Any]:
    """Download the raw spinner catalog."""
    logger.info("Fetching spinner catalog from %s", url)
    response = httpx.get(url, timeout=timeout, follow_redirects=True)
    response.raise_for_status()
    return response.json()


def load_catalog(config_dir: Path, url: str = SPINNERS_URL) -> SpinnerCatalog:
    """Load the cached catalog, downloading it on first use.

    Args:
        config_dir: Directory holding the cached catalog.
        url: Where to download the catalog from when no cache exists.

    Returns:
        Validated spinner catalog.

    Raises:
        SpinnerCatalogError: If the catalog cannot be fetched, parsed or validated.

    """
    path = config_dir / SPINNERS_FILE
    if not path.exists():
        try:
            raw = fetch_catalog(url)
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise SpinnerCatalogError(f"Could not download spinner catalog: {e}") from e
        config_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(raw), encoding="utf-8")
    else:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SpinnerCatalogError(f"{path} is not valid JSON: {e}") from e

    catalog = parse_catalog(raw)
    logger.debug("Loaded %d spinners from %s", len(catalog), path)
    return catalog


def choose_spinner(catalog: SpinnerCatalog, rng: random.Random) -> SpinnerSpec:
    """Pick one spinner uniformly at random."""
    if not catalog:
        raise SpinnerCatalogError("Spinner catalog is empty")
    return rng.choice(list(catalog.values()))
