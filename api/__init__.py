"""HTTP API over the download job service."""
