"""Record encoding, output writing and progress reporting."""
