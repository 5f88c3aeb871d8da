"""Discovery, filtering, parallel parsing and ordered aggregation."""
