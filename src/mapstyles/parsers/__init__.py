"""External encodings (SLD, CSS, ...) of the structured style model."""
