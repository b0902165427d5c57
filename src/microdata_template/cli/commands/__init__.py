"""Top-level commands (``microdata-template <command>``)."""
