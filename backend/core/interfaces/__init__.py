# Interfaces (Abstract Contracts)
# Infrastructure and services implement these interfaces
from .services import ActorResolver, Clock

__all__ = [
    "ActorResolver",
    "Clock",
]
