"""Price alerts for metals, indices, and crypto."""
