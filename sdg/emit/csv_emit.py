"""CSV emission of generated rows."""

from __future__ import annotations

from pathlib import Path

import pandas as pd


def write_csv(path: str | Path, frame: pd.DataFrame) -> None:
    """Write generated rows with a header line and no index column."""

    frame.to_csv(Path(path), index=False)
