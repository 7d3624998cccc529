"""Core remote config logic: registry, document, validator and manager."""
