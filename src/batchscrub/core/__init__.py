"""Core services: configuration, logging, events, storage, annotations."""
