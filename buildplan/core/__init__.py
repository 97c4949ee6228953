"""Core layer — models, configuration, engine and use cases."""
