"""SchemaBridge command-line interface."""
