"""Core building blocks of a Mercure hub: updates, URI-template topic selectors, subscribers, transport interfaces and metrics."""

__version__ = "0.1.0"