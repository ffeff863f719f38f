"""Domain layer: records, validation rules and repository interfaces."""
