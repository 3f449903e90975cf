"""Pure domain core: values, numbering, input normalization, DTOs. Zero I/O."""
