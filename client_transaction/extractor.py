"""
Extraction of the derivation inputs from the home page.

Covers the ondemand script offsets, the site verification key and the
loading animation path data.
"""

import asyncio
import logging
import re
from base64 import b64decode
from binascii import Error as Base64Error
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from client_transaction.config import TransactionSettings
from client_transaction.document import HomePageDocument
from client_transaction.errors import IndicesNotFound, InvalidFrameData, InvalidKeyBytes, KeyNotFound

logger = logging.getLogger(__name__)

ON_DEMAND_FILE_REGEX = re.compile(r"""(['"])ondemand\.s\1:\s*(['"])(\w*)\2""")
INDICES_REGEX = re.compile(r"\(\w\[(\d{1,2})\],\s*16\)")
PATH_PREAMBLE_LENGTH = 9
FRAME_SELECTOR_OFFSET = 5


@dataclass(frozen=True)
class IndexSet:
    """Key byte offsets read from the ondemand script."""
    row_index: int
    key_byte_indices: Tuple[int, ...]

    @classmethod
    def from_matches(cls, matches: Sequence[int]) -> "IndexSet":
        if not matches:
            raise IndicesNotFound("Couldn't get KEY_BYTE indices")
        return cls(row_index=matches[0], key_byte_indices=tuple(matches[1:]))

    @property
    def offsets(self) -> Tuple[int, ...]:
        return (self.row_index,) + self.key_byte_indices


def parse_indices(script_text: str) -> List[int]:
    return [int(match) for match in INDICES_REGEX.findall(script_text)]


def find_ondemand_version(markup: str) -> Optional[str]:
    match = ON_DEMAND_FILE_REGEX.search(markup)
    return match.group(3) if match else None


async def resolve_indices(document: HomePageDocument, fetch, settings: Optional[TransactionSettings] = None) -> IndexSet:
    """
    Resolve the row and key byte offsets from the ondemand script.

    Args:
        document: Home page document
        fetch: Awaitable callable returning the text at a URL
        settings: Host and timeout configuration

    Returns:
        IndexSet with the row offset and the key byte offsets in script order

    Raises:
        IndicesNotFound: If the script reference is missing, the fetch fails
            or times out, or the script holds no offsets
    """
    settings = settings or TransactionSettings()
    version = find_ondemand_version(document.markup)
    if version is None:
        raise IndicesNotFound("Couldn't find the ondemand.s script reference in the page")

    url = settings.ondemand_url(version)
    logger.debug(f"Fetching ondemand script {url}")
    try:
        script_text = await asyncio.wait_for(fetch(url), timeout=settings.fetch_timeout)
    except asyncio.TimeoutError as e:
        raise IndicesNotFound(f"Timed out fetching ondemand file after {settings.fetch_timeout}s") from e
    except Exception as e:
        raise IndicesNotFound(f"Error fetching ondemand file: {e}") from e

    indices = IndexSet.from_matches(parse_indices(script_text))
    logger.debug(f"Resolved indices row={indices.row_index} key_bytes={list(indices.key_byte_indices)}")
    return indices


def get_key(document: HomePageDocument, settings: Optional[TransactionSettings] = None) -> str:
    settings = settings or TransactionSettings()
    content = document.get_attribute(f"[name='{settings.verification_meta_name}']", "content")
    if not content:
        raise KeyNotFound("Couldn't get key from the page source")
    return content


def get_key_bytes(key: str) -> bytes:
    try:
        return b64decode(key, validate=True)
    except (Base64Error, ValueError) as e:
        raise InvalidKeyBytes(f"Verification key is not valid base64: {e}") from e


def key_byte(key_bytes: bytes, offset: int) -> int:
    """Key byte at ``offset``, failing when the key is too short."""
    if offset >= len(key_bytes):
        raise InvalidKeyBytes(
            f"Key has {len(key_bytes)} bytes but offset {offset} is required"
        )
    return key_bytes[offset]


def get_frames(document: HomePageDocument, settings: Optional[TransactionSettings] = None):
    settings = settings or TransactionSettings()
    return document.select_by_id_prefix(settings.frame_id_prefix)


def parse_path_data(path_data: str) -> List[List[int]]:
    """Split SVG path data into integer rows, one per curve segment."""
    rows = []
    for segment in path_data[PATH_PREAMBLE_LENGTH:].split("C"):
        cleaned = re.sub(r"[^0-9]+", " ", segment).strip()
        rows.append([int(token) for token in cleaned.split()] if cleaned else [])
    return rows


def get_2d_array(key_bytes: bytes, document: HomePageDocument, settings: Optional[TransactionSettings] = None, frames=None) -> List[List[int]]:
    """
    Frame table of the animation frame selected by the key.

    Args:
        key_bytes: Decoded verification key
        document: Home page document
        settings: Frame id prefix configuration
        frames: Pre-selected frame elements

    Returns:
        Rows of integers, empty if the page has no animation frames

    Raises:
        InvalidFrameData: If the path node or its ``d`` attribute is missing
        InvalidKeyBytes: If the key is too short to select a frame
    """
    if frames is None:
        frames = get_frames(document, settings)
    if not frames:
        return []

    frame_index = key_byte(key_bytes, FRAME_SELECTOR_OFFSET) % 4
    if frame_index >= len(frames):
        raise InvalidFrameData(f"Animation frame {frame_index} not found ({len(frames)} frames)")

    frame = frames[frame_index]
    children = HomePageDocument.element_children(frame)
    if not children:
        raise InvalidFrameData(f"Animation frame {frame_index} has no shape group")
    shapes = HomePageDocument.element_children(children[0])
    if len(shapes) < 2:
        raise InvalidFrameData(f"Animation frame {frame_index} has no path element")

    path_data = shapes[1].get("d")
    if path_data is None:
        raise InvalidFrameData(f"Animation frame {frame_index} path has no 'd' attribute")
    return parse_path_data(path_data)
