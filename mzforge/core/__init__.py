"""Core plugin model operations: parameter types, generation, import and validation."""
