"""CSV ingestion of recorded movement.

The first row of a movement CSV names the channels (joint names plus
``pos_0..2`` and ``rot_0..2``); every following row is one frame. A trailing
empty row is discarded. Cells that do not parse as numbers become NaN and are
reported with a single warning per load rather than rejected, so a partially
corrupt recording still plays.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, Any

import numpy as np
import pandas as pd

from robotreplay._timing import timed
from robotreplay.movement.series import Series

logger = logging.getLogger(__name__)


def _drop_trailing_empty_row(frame: pd.DataFrame) -> pd.DataFrame:
    if len(frame) == 0:
        return frame
    last = frame.iloc[-1]
    if all(pd.isna(v) or str(v).strip() == "" for v in last):
        return frame.iloc[:-1]
    return frame


def _coerce_numeric(raw: pd.DataFrame, source_name: str) -> Series:
    """Convert string cells to float64 and build a Series, logging coercions."""
    raw = _drop_trailing_empty_row(raw)
    if len(raw) == 0:
        logger.warning("%s: movement has a header but no frames", source_name)
        return Series(np.empty((0, raw.shape[1])), [str(c) for c in raw.columns])

    numeric = raw.apply(pd.to_numeric, errors="coerce").astype(np.float64)

    # Cells that came out NaN were unparseable or empty, unless literally "nan"
    was_nan_literal = raw.astype(str).apply(
        lambda col: col.str.strip().str.lower() == "nan"
    )
    coerced = numeric.isna() & ~was_nan_literal
    n_coerced = int(coerced.to_numpy().sum())
    if n_coerced:
        per_channel = coerced.sum()
        worst = per_channel[per_channel > 0].sort_values(ascending=False)
        logger.warning(
            "%s: %d of %d cells were missing or non-numeric and will play as 0.0 "
            "(per channel: %s)",
            source_name,
            n_coerced,
            coerced.size,
            ", ".join(f"{name}={count}" for name, count in worst.items()),
        )

    series = Series(numeric.to_numpy(), [str(c) for c in numeric.columns])
    logger.info(
        "Loaded movement from %s: %d frames, %d channels",
        source_name,
        len(series),
        len(series.channels),
    )
    return series


@timed
def read_movement_csv(source: str | Path | IO[str]) -> Series:
    """Parse a movement CSV into a :class:`Series`.

    Parameters
    ----------
    source : str, Path or text file object
        Path to the CSV or an open text stream (e.g. a file picked by the
        user and already read into a :class:`io.StringIO`).

    Returns
    -------
    Series
        Parsed movement; unparseable cells are NaN.

    Raises
    ------
    ValueError
        If the file has no header row or no channels.
    FileNotFoundError
        If ``source`` is a path that does not exist.

    Examples
    --------
    >>> import io
    >>> series = read_movement_csv(io.StringIO("hip,pos_0\\n0.1,1\\n0.2,x\\n"))
    >>> len(series), series.channels
    (2, ('hip', 'pos_0'))
    """
    source_name = str(source) if isinstance(source, (str, Path)) else getattr(
        source, "name", "<stream>"
    )
    try:
        raw = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise ValueError(
            f"[E2003] Movement CSV {source_name} is empty; expected a header row "
            "naming the channels."
        ) from e

    if raw.shape[1] == 0:
        raise ValueError(f"[E2003] Movement CSV {source_name} declares no channels.")
    raw.columns = [str(c).strip() for c in raw.columns]
    return _coerce_numeric(raw, source_name)


def series_from_records(
    records: Sequence[Mapping[str, Any]],
    channels: Sequence[str] | None = None,
) -> Series:
    """Build a :class:`Series` from already-parsed row mappings.

    This is the boundary for external CSV parsers that yield one mapping per
    row keyed by header name.

    Parameters
    ----------
    records : sequence of mapping
        One mapping per frame.
    channels : sequence of str, optional
        Channel order. Defaults to the keys of the first record.

    Raises
    ------
    ValueError
        If no channels can be determined.
    """
    if channels is None:
        channels = list(records[0].keys()) if records else []
    if not channels:
        raise ValueError("[E2003] Cannot build a series without channel names.")
    raw = pd.DataFrame.from_records(list(records), columns=list(channels))
    return _coerce_numeric(raw, "<records>")


__all__ = ["read_movement_csv", "series_from_records"]
