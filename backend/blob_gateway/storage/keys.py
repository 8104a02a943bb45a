"""
Blob key codec.

Maps a logical (namespace, key) pair to its physical addresses:

- storage key:  "<namespace>:<key>" in the bucket chosen by visibility
- metadata key: "__BLOB:<namespace>:<key>" in the metadata store

Identifiers are not escaped. A namespace or key that itself contains ":"
yields an ambiguous storage key ("a:b" + "c" == "a" + "b:c"); callers that
need strict separation must validate identifiers before they get here.
"""
import enum
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple, TypeVar
from urllib.parse import quote

from blob_gateway.config import settings
from blob_gateway.errors import InvalidIdentifier, StorageUnavailable

SEPARATOR = ":"

# Characters encodeURIComponent leaves alone besides the quote() defaults
_URI_COMPONENT_SAFE = "!*'()"

StoreT = TypeVar("StoreT")


class Visibility(str, enum.Enum):
    """Which physical bucket holds a blob."""
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def of(cls, is_public: bool) -> "Visibility":
        return cls.PUBLIC if is_public else cls.PRIVATE


@dataclass(frozen=True)
class BlobAddress:
    """Physical addresses derived from a (namespace, key) pair."""
    namespace: str
    key: str
    storage_key: str
    metadata_key: str


def derive(namespace: str, key: str, prefix: Optional[str] = None) -> Tuple[str, str]:
    """
    Derive (storage_key, metadata_key) for a blob.

    Raises:
        InvalidIdentifier: namespace or key is empty
    """
    if not namespace or not key:
        raise InvalidIdentifier(namespace=namespace or None, key=key or None)
    if prefix is None:
        prefix = settings.metadata_key_prefix
    storage_key = f"{namespace}{SEPARATOR}{key}"
    return storage_key, f"{prefix}{SEPARATOR}{storage_key}"


def address(namespace: str, key: str) -> BlobAddress:
    storage_key, metadata_key = derive(namespace, key)
    return BlobAddress(namespace, key, storage_key, metadata_key)


def select_store(stores: Mapping[Visibility, StoreT], is_public: bool) -> StoreT:
    """Pick the object store for a visibility flag."""
    visibility = Visibility.of(is_public)
    try:
        return stores[visibility]
    except KeyError:
        raise StorageUnavailable(f"No object store configured for {visibility.value} blobs") from None


def encode_uri_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(value, safe=_URI_COMPONENT_SAFE)
