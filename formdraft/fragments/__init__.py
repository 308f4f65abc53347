"""Encoding of editor snapshots into section fragments."""
from formdraft.fragments.codec import (
    DEFAULT_FORM,
    SnapshotCodec,
    default_form,
    default_fragment,
)

__all__ = ["DEFAULT_FORM", "SnapshotCodec", "default_form", "default_fragment"]
