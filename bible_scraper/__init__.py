"""Resumable, throttled Bible chapter downloader and .bible / JSON assembler."""
