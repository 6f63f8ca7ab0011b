"""
Descriptor Database
===================

Reads and writes the labeled face descriptor file, a JSON array of
``{"label": ..., "descriptor": [...]}`` records produced by
``prepare_descriptors.py``, and groups the records into one reference
entry per label for the matcher.
"""

import json
import logging
import math
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Union

import httpx
import numpy as np
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from config import KEEP_ALL_DESCRIPTORS

logger = logging.getLogger(__name__)


class LoadError(Exception):
    """The descriptor resource is unreachable or malformed."""


class DescriptorRecord(BaseModel):
    label: str = Field(min_length=1)
    descriptor: List[float] = Field(min_length=1)

    @field_validator("descriptor")
    @classmethod
    def _finite(cls, value: List[float]) -> List[float]:
        if not all(math.isfinite(v) for v in value):
            raise ValueError("descriptor contains non-finite values")
        return value


_records_adapter = TypeAdapter(List[DescriptorRecord])


@dataclass
class LabeledDescriptors:
    label: str
    descriptors: List[np.ndarray] = field(default_factory=list)


def parse_records(raw) -> List[DescriptorRecord]:
    """Validate decoded JSON into descriptor records of a single dimensionality."""
    try:
        records = _records_adapter.validate_python(raw)
    except ValidationError as e:
        raise LoadError(f"Malformed descriptor records: {e.error_count()} error(s)") from e

    lengths = {len(r.descriptor) for r in records}
    if len(lengths) > 1:
        raise LoadError(f"Descriptors have mixed lengths: {sorted(lengths)}")
    return records


def group_descriptors(records: Iterable[DescriptorRecord],
                      keep_all: bool = KEEP_ALL_DESCRIPTORS) -> List[LabeledDescriptors]:
    """
    Build one reference group per distinct label, in first-seen order.

    With ``keep_all`` off only the first descriptor seen for each label is
    kept and later records for that label are ignored.
    """
    mapping: Dict[str, LabeledDescriptors] = {}
    ignored = 0

    for record in records:
        group = mapping.get(record.label)
        if group is None:
            group = mapping[record.label] = LabeledDescriptors(record.label)
        elif not keep_all:
            ignored += 1
            continue
        group.descriptors.append(np.asarray(record.descriptor, dtype=np.float32))

    if ignored:
        logger.warning(f"Ignored {ignored} additional descriptor(s) for already seen labels "
                       f"(set KEEP_ALL_DESCRIPTORS to use them)")

    return list(mapping.values())


def read_descriptor_source(source: Union[str, Path]):
    """Read the raw JSON from a local file or an http(s) URL"""
    source = str(source)
    try:
        if source.startswith(("http://", "https://")):
            response = httpx.get(source)
            response.raise_for_status()
            return response.json()
        return json.loads(Path(source).read_text(encoding="utf-8"))
    except (OSError, httpx.HTTPError, ValueError) as e:
        raise LoadError(f"Could not read descriptors from {source}: {e}") from e


def load_reference_set(source: Union[str, Path],
                       keep_all: bool = KEEP_ALL_DESCRIPTORS) -> List[LabeledDescriptors]:
    records = parse_records(read_descriptor_source(source))
    groups = group_descriptors(records, keep_all=keep_all)
    logger.info(f"Loaded {len(records)} descriptor records for {len(groups)} labels from {source}")
    return groups


def load_reference_set_async(source: Union[str, Path],
                             on_loaded: Callable[[List[LabeledDescriptors]], None],
                             keep_all: bool = KEEP_ALL_DESCRIPTORS) -> threading.Thread:
    """
    Load the reference set on a background thread.

    ``on_loaded`` is called once with the groups when loading succeeds. A
    load failure is logged and leaves recognition unavailable.
    """
    def _load():
        try:
            groups = load_reference_set(source, keep_all=keep_all)
        except LoadError as e:
            logger.warning(f"Face recognition disabled: {e}")
            return
        on_loaded(groups)

    thread = threading.Thread(target=_load, name="descriptor-loader", daemon=True)
    thread.start()
    return thread


def write_descriptor_file(records: Iterable[DescriptorRecord], path: Union[str, Path]) -> Path:
    """Serialize records to a JSON array at ``path``"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [record.model_dump() for record in records]
    path.write_text(json.dumps(data), encoding="utf-8")
    logger.info(f"Wrote {len(data)} descriptor records to {path}")
    return path


def record_for(label: str, descriptor: np.ndarray) -> DescriptorRecord:
    return DescriptorRecord(label=label, descriptor=[float(v) for v in descriptor])
