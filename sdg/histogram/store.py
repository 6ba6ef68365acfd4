"""Histogram persistence and statistics loaders."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, MutableMapping, Optional, Tuple

import yaml

from sdg.errors import MalformedStatisticsError

from .model import DEFAULT_MAX_TEXT_LEN, Bucket, Histogram, ValueKind

logger = logging.getLogger(__name__)

_INT_TYPES = {
    "int", "integer", "bigint", "smallint", "tinyint", "mediumint", "serial", "bigserial",
    "int8", "int16", "int32", "int64", "uint8", "uint16", "uint32", "uint64", "long",
}
_TEXT_TYPES = {
    "text", "varchar", "char", "string", "str", "object", "tinytext", "mediumtext",
    "longtext", "character varying", "character", "bpchar", "varbinary", "binary",
}
_TYPE_RE = re.compile(r"^\s*([a-zA-Z0-9_ ]+?)\s*(?:\(\s*(\d+)\s*\))?\s*(?:unsigned)?\s*$")


def parse_type(type_name: str) -> Tuple[Optional[ValueKind], Optional[int]]:
    """
    Map a SQL or pandas type name to a value kind and optional length.

    ``varchar(20)`` yields ``(TEXT, 20)``; unsupported types yield ``(None, None)``.
    """

    match = _TYPE_RE.match(str(type_name).lower())
    if match is None:
        return None, None
    base, length = match.group(1), match.group(2)
    if base in _INT_TYPES:
        return ValueKind.INTEGER, None
    if base in _TEXT_TYPES:
        return ValueKind.TEXT, int(length) if length else None
    return None, None


def normalize_kind(type_name: str) -> Optional[ValueKind]:
    return parse_type(type_name)[0]


class HistogramSource(ABC):
    """Common interface for anything that can hand out column histograms."""

    @abstractmethod
    def columns(self) -> List[str]:
        """Return the names of the histograms this source can load."""

    @abstractmethod
    def load(self, column: str) -> Histogram:
        """Return the histogram for ``column``."""

    def load_all(self, columns: Optional[List[str]] = None) -> Dict[str, Histogram]:
        names = self.columns() if columns is None else columns
        return {name: self.load(name) for name in names}


# ---------------------------------------------------------------------- YAML
def _histogram_to_dict(hist: Histogram) -> Dict[str, object]:
    if hist.is_index:
        bounds: List[object] = [bytes(value).hex() for value in hist.bounds]
    elif hist.kind is ValueKind.INTEGER:
        bounds = [int(value) for value in hist.bounds]
    else:
        bounds = [hist.text_bound(i) for i in range(len(hist.bounds))]
    return {
        "kind": hist.kind.value,
        "is_index": bool(hist.is_index),
        "max_text_len": int(hist.max_text_len),
        "buckets": [[int(b.count), int(b.repeat)] for b in hist.buckets],
        "bounds": bounds,
    }


def _histogram_from_dict(name: str, payload: MutableMapping[str, object]) -> Histogram:
    try:
        kind = ValueKind(payload.get("kind", ValueKind.TEXT.value))
        is_index = bool(payload.get("is_index", False))
        buckets = [Bucket(count=int(c), repeat=int(r)) for c, r in payload.get("buckets", [])]
        raw_bounds = list(payload.get("bounds", []))
        if is_index:
            bounds: List[object] = [bytes.fromhex(str(value)) for value in raw_bounds]
        elif kind is ValueKind.INTEGER:
            bounds = [int(value) for value in raw_bounds]
        else:
            bounds = [str(value) for value in raw_bounds]
    except (TypeError, ValueError) as exc:
        raise MalformedStatisticsError(f"cannot read histogram: {exc}", name) from exc
    return Histogram(
        buckets=tuple(buckets),
        bounds=tuple(bounds),
        kind=kind,
        is_index=is_index,
        max_text_len=int(payload.get("max_text_len", DEFAULT_MAX_TEXT_LEN)),
        name=name,
    )


def save_yaml(
    histograms: Mapping[str, Histogram],
    path: str | Path,
    metadata: Optional[Mapping[str, object]] = None,
) -> None:
    """Persist histograms and optional metadata to YAML."""

    payload: Dict[str, object] = {
        "columns": {name: _histogram_to_dict(hist) for name, hist in histograms.items()}
    }
    if metadata:
        payload["metadata"] = dict(metadata)
    with Path(path).open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=True, allow_unicode=True)


def load_yaml(path: str | Path) -> Tuple[Dict[str, Histogram], Dict[str, object]]:
    """Read histograms and metadata written by :func:`save_yaml`."""

    with Path(path).open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    columns = payload.get("columns", {}) or {}
    histograms = {
        name: _histogram_from_dict(name, data)
        for name, data in columns.items()
    }
    metadata = payload.get("metadata", {}) or {}
    return histograms, metadata


class YAMLStatsSource(HistogramSource):
    """Histograms stored in a YAML file produced by ``sdg profile``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._histograms, self.metadata = load_yaml(self._path)

    def columns(self) -> List[str]:
        return list(self._histograms)

    def load(self, column: str) -> Histogram:
        try:
            return self._histograms[column]
        except KeyError:
            raise KeyError(f"no histogram for column {column!r} in {self._path}") from None


# ---------------------------------------------------------------------- JSON
class JSONStatsSource(HistogramSource):
    """
    Histograms from a TiDB-style JSON statistics dump.

    The dump keeps column and index histograms under ``columns`` and
    ``indices``; every bucket carries ``count``, ``repeats`` and base64 encoded
    ``lower_bound`` / ``upper_bound``. Column bounds hold the value as text.
    Index bounds hold memcomparable keys and are decoded on access, so only
    integer indexes are supported.

    ``schema`` maps column and index names to type names (``bigint``,
    ``varchar(32)``, ...). Entries without a supported type are skipped.
    """

    def __init__(
        self,
        path: str | Path,
        schema: Mapping[str, str],
        max_text_len: int = DEFAULT_MAX_TEXT_LEN,
    ) -> None:
        self._path = Path(path)
        self._schema = dict(schema)
        self._max_text_len = max_text_len
        with self._path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise MalformedStatisticsError(f"{self._path} does not hold a statistics object")
        self.table = payload.get("table_name")
        self.row_count = payload.get("count")
        self._entries: Dict[str, Tuple[Mapping[str, object], bool]] = {}
        for group, is_index in (("columns", False), ("indices", True)):
            for name, entry in (payload.get(group) or {}).items():
                self._entries[name] = (entry, is_index)

    def columns(self) -> List[str]:
        names: List[str] = []
        for name, (_, is_index) in self._entries.items():
            kind, _ = parse_type(self._schema.get(name, ""))
            if kind is None:
                logger.warning("skipping %s: no supported type in schema", name)
                continue
            if is_index and kind is not ValueKind.INTEGER:
                logger.warning("skipping index %s: only integer indexes can be decoded", name)
                continue
            names.append(name)
        return names

    def load(self, column: str) -> Histogram:
        if column not in self._entries:
            raise KeyError(f"no statistics for {column!r} in {self._path}")
        entry, is_index = self._entries[column]
        kind, length = parse_type(self._schema.get(column, ""))
        if kind is None:
            raise ValueError(f"column {column!r} has no supported type in schema")

        histogram = entry.get("histogram") or {}
        buckets: List[Bucket] = []
        bounds: List[object] = []
        try:
            for raw in histogram.get("buckets") or []:
                buckets.append(Bucket(count=int(raw["count"]), repeat=int(raw.get("repeats", 0))))
                for key in ("lower_bound", "upper_bound"):
                    data = base64.b64decode(raw[key], validate=True)
                    bounds.append(self._convert(data, kind, is_index))
        except (KeyError, TypeError, ValueError, binascii.Error) as exc:
            raise MalformedStatisticsError(f"bad bucket: {exc}", column) from exc

        return Histogram(
            buckets=tuple(buckets),
            bounds=tuple(bounds),
            kind=kind,
            is_index=is_index,
            max_text_len=length or self._max_text_len,
            name=column,
        )

    @staticmethod
    def _convert(data: bytes, kind: ValueKind, is_index: bool) -> object:
        if is_index:
            return data
        text = data.decode("utf-8")
        if kind is ValueKind.INTEGER:
            return int(text)
        return text
