"""Backend client registry for breaking circular imports.

This module holds the Messages client instance so that routes can import it
without causing circular imports with the main module.
"""

# Global client instance - set by main.create_app during initialization
client = None


def set_client(client_instance):
    """Set the global Messages client instance."""
    global client
    client = client_instance


def get_client():
    """Get the global Messages client instance."""
    if client is None:
        raise RuntimeError("Messages client not initialized. Did you call set_client?")
    return client
