"""Application context with dependency injection."""

from __future__ import annotations

from typing import Optional

from .core.playback import PlaybackController
from .core.resolver import TrackResolver
from .infrastructure.catalog_store import CatalogStore
from .services.audio_backend import AudioBackend, MpvBackend
from .services.tag_reader import MetadataReader, TagReader
from .settings import Settings


class PlayerContext:
    """Everything one command loop needs, passed explicitly into each command."""

    def __init__(
        self,
        store: CatalogStore,
        backend: AudioBackend,
        tag_reader: TagReader,
    ):
        """Initialize the context.

        Args:
            store: Open catalog store (owned by the context from now on)
            backend: Audio backend used for every play request
            tag_reader: Tag extraction used by add
        """
        self.store = store
        self.tag_reader = tag_reader
        self.resolver = TrackResolver(store)
        self.controller = PlaybackController(backend)
        self.selected_id: Optional[int] = None

    def close(self) -> None:
        """Stop playback and close the catalog."""
        self.controller.shutdown()
        self.store.close()

    def __enter__(self) -> PlayerContext:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @classmethod
    def create(
        cls,
        settings: Settings,
        *,
        backend: Optional[AudioBackend] = None,
        tag_reader: Optional[TagReader] = None,
    ) -> PlayerContext:
        """Build a context from settings, with optional collaborator overrides."""
        if backend is None:
            backend = MpvBackend(
                mpv_path=settings.mpv_path,
                startup_timeout=settings.mpv_startup_timeout,
            )
        return cls(
            store=CatalogStore(settings.catalog_path),
            backend=backend,
            tag_reader=tag_reader or MetadataReader(),
        )
