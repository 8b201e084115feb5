"""Ports to the entity services that asynchronous tasks wrap."""
