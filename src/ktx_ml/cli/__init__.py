"""Command-line interface for KTX-ML."""
