"""Dataset implementations built on the shared base classes."""
