"""HTTP interface for the plate configurator."""
