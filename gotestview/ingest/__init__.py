"""Ingestion threads, render loop, and animation ticker."""

from gotestview.ingest.coordinator import (
    IngestionCoordinator,
    RenderLoop,
    Ticker,
    import_into_channel,
    read_event_stream,
)

__all__ = [
    "IngestionCoordinator",
    "RenderLoop",
    "Ticker",
    "import_into_channel",
    "read_event_stream",
]
