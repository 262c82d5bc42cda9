"""Pure style logic: classification, filters, symbolizers and translation."""
