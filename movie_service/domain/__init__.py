"""
Domain layer - Core business entities and domain logic.

This layer contains the movie and user objects and the error taxonomy,
independent of any infrastructure or framework concerns.
"""
