"""Domain layer: validation, the membership mutation engine and report projection."""
