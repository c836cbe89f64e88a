"""Jobs — command-line entry points for scheduled maintenance."""
