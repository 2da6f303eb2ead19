"""
Session lifecycle for transaction id generation.

A session resolves the ondemand offsets, the verification key and the
animation key once, then signs any number of requests from that cached,
immutable state.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from client_transaction.animation import get_animation_key
from client_transaction.config import TransactionSettings
from client_transaction.document import HomePageDocument
from client_transaction.errors import InitializationFailed, NotInitialized
from client_transaction.extractor import IndexSet, get_2d_array, get_key, get_key_bytes, resolve_indices
from client_transaction.fetch import Fetcher, build_fetcher
from client_transaction.signature import (
    current_time_now,
    default_random_byte,
    default_sha256,
    generate_transaction_id,
)
from observability import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    """Initialization states."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionContext:
    """Everything derived from the home page during initialization."""
    document: HomePageDocument
    settings: TransactionSettings
    indices: IndexSet
    key: str
    key_bytes: bytes
    frame_table: List[List[int]]
    animation_key: str

    def resolve_key(self, key: Optional[str] = None, document: Optional[HomePageDocument] = None) -> str:
        """Explicit key, else the cached key, else the key of ``document``."""
        if key:
            return key
        if self.key:
            return self.key
        return get_key(document or self.document, self.settings)

    def resolve_key_bytes(self, key: Optional[str] = None, document: Optional[HomePageDocument] = None) -> bytes:
        key = self.resolve_key(key, document)
        if key == self.key and self.key_bytes:
            return self.key_bytes
        return get_key_bytes(key)

    def resolve_animation_key(
        self,
        key_bytes: bytes,
        animation_key: Optional[str] = None,
        document: Optional[HomePageDocument] = None
    ) -> str:
        """Explicit animation key, else the cached one, else a derivation from ``key_bytes`` and ``document``."""
        if animation_key:
            return animation_key
        if self.animation_key:
            return self.animation_key
        frame_table = get_2d_array(key_bytes, document or self.document, self.settings)
        return get_animation_key(key_bytes, frame_table, self.indices)


async def initialize_session(
    document: HomePageDocument,
    fetch: Fetcher,
    settings: Optional[TransactionSettings] = None
) -> SessionContext:
    """
    Run the full extraction chain for a home page.

    Args:
        document: Home page document
        fetch: Fetcher for the ondemand script
        settings: Extraction settings

    Returns:
        Immutable SessionContext

    Raises:
        TransactionError: Any extraction failure, unwrapped
    """
    settings = settings or TransactionSettings()
    indices = await resolve_indices(document, fetch, settings)
    key = get_key(document, settings)
    key_bytes = get_key_bytes(key)
    frame_table = get_2d_array(key_bytes, document, settings)
    animation_key = get_animation_key(key_bytes, frame_table, indices)
    return SessionContext(
        document=document,
        settings=settings,
        indices=indices,
        key=key,
        key_bytes=key_bytes,
        frame_table=frame_table,
        animation_key=animation_key,
    )


class ClientTransaction:
    """Generates x-client-transaction-id header values for one home page."""

    def __init__(
        self,
        home_page_document: HomePageDocument,
        fetch: Optional[Fetcher] = None,
        settings: Optional[TransactionSettings] = None,
        sha256: Callable[[bytes], bytes] = default_sha256,
        random_byte: Callable[[], int] = default_random_byte
    ):
        """
        Create an uninitialized session.

        Args:
            home_page_document: Parsed X home page
            fetch: Fetcher for the ondemand script; a fetcher built from
                ``settings`` is opened per initialization attempt when omitted
            settings: Extraction settings
            sha256: Digest function
            random_byte: Source of the per-call XOR mask
        """
        self.home_page_document = home_page_document
        self.fetch = fetch
        self.settings = settings or TransactionSettings()
        self.sha256 = sha256
        self.random_byte = random_byte

        self.state = SessionState.UNINITIALIZED
        self.context: Optional[SessionContext] = None
        self._pending: Optional[asyncio.Future] = None

    @classmethod
    async def create(cls, home_page_document: HomePageDocument, **kwargs) -> "ClientTransaction":
        """Construct and initialize a session."""
        instance = cls(home_page_document, **kwargs)
        await instance.initialize()
        return instance

    @property
    def is_initialized(self) -> bool:
        return self.state == SessionState.READY

    async def initialize(self) -> SessionContext:
        """
        Initialize the session, sharing one attempt between concurrent callers.

        Returns:
            The session context

        Raises:
            InitializationFailed: If any extraction step fails; the session
                may be initialized again afterwards
        """
        if self.state == SessionState.READY and self.context is not None:
            return self.context

        if self._pending is None or self._pending.done():
            self.state = SessionState.INITIALIZING
            self._pending = asyncio.ensure_future(self._run_initialization())
            self._pending.add_done_callback(self._on_initialization_done)
        return await self._pending

    def _on_initialization_done(self, task: asyncio.Future) -> None:
        # A task cancelled before its first step never reaches its own handler
        if task.cancelled() and self._pending is task:
            self.state = SessionState.UNINITIALIZED
            self._pending = None

    async def _run_initialization(self) -> SessionContext:
        try:
            if self.fetch is not None:
                context = await initialize_session(self.home_page_document, self.fetch, self.settings)
            else:
                async with build_fetcher(self.settings) as fetch:
                    context = await initialize_session(self.home_page_document, fetch, self.settings)
        except asyncio.CancelledError:
            logger.warning("ClientTransaction initialization cancelled")
            self.state = SessionState.UNINITIALIZED
            self._pending = None
            raise
        except Exception as e:
            logger.error(f"Failed to initialize ClientTransaction: {e}", exc_info=True)
            self.state = SessionState.FAILED
            self._pending = None
            raise InitializationFailed(f"Failed to initialize ClientTransaction: {e}", cause=e) from e

        self.context = context
        self.state = SessionState.READY
        self._pending = None
        logger.info(
            f"ClientTransaction ready: row_offset={context.indices.row_index}, "
            f"key_byte_offsets={len(context.indices.key_byte_indices)}, rows={len(context.frame_table)}",
            extra={"ondemand_offsets": list(context.indices.offsets), "verification_key": context.key}
        )
        return context

    def generate_transaction_id(
        self,
        method: str,
        path: str,
        time_now: Optional[int] = None,
        key: Optional[str] = None,
        animation_key: Optional[str] = None,
        document: Optional[HomePageDocument] = None
    ) -> str:
        """
        Generate a transaction id for one request.

        Args:
            method: HTTP method (GET, POST, ...)
            path: API endpoint path
            time_now: Seconds since the transaction id epoch, defaults to now
            key: Verification key used instead of the cached one
            animation_key: Animation key used instead of the cached one
            document: Home page to derive from when nothing is cached

        Returns:
            Unpadded base64 transaction id

        Raises:
            NotInitialized: If initialize() has not completed
        """
        if self.state != SessionState.READY or self.context is None:
            raise NotInitialized(
                "ClientTransaction is not initialized. Call initialize() before using."
            )

        if time_now is None:
            time_now = current_time_now()
        key_bytes = self.context.resolve_key_bytes(key, document)
        animation_key = self.context.resolve_animation_key(key_bytes, animation_key, document)
        return generate_transaction_id(
            method,
            path,
            key_bytes,
            animation_key,
            time_now,
            sha256=self.sha256,
            random_byte=self.random_byte,
        )
