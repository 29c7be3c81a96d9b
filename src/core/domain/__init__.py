"""Domain models and entities.

Pure, strict data structures (Pydantic v2) plus the failure taxonomy.
The domain knows nothing about HTTP clients, the CLI or storage backends.
"""
