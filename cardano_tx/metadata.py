"""Transaction metadata encoding."""

from typing import Any, Dict, List, Union

from pycardano import AuxiliaryData, Metadata


def split_string(s: str, max_len: int = 40) -> List[str]:
    """Split a long string (e.g. an address) into metadata-sized chunks."""
    return [s[i:i + max_len] for i in range(0, len(s), max_len)]


def _convert(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _convert(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_convert(v) for v in value]
    return value


def encode_metadata(metadata: Dict[Union[int, str], Any]) -> bytes:
    """
    Encode JSON-style metadata into auxiliary data CBOR for TxBuilder.set_metadata.

    Top-level labels may be ints or digit strings ({"0": {...}} as cardano-cli
    accepts). Strings longer than 64 bytes are rejected by pycardano; use
    split_string for those.
    """
    labelled = {int(label): _convert(value) for label, value in metadata.items()}
    return AuxiliaryData(data=Metadata(labelled)).to_cbor()
