"""Live tree viewer and rerun history for `go test -json` event streams."""

__version__ = "0.1.0"
