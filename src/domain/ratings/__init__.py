"""Rating model, match formats, result validation and config loading."""
