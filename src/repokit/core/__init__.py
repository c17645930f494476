"""Configuration, logging, tracing and database helpers."""
