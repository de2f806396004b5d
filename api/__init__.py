"""HTTP integration points for the payload repair pipeline."""
