"""openupm - scoped-registry package manager for project manifests."""

__version__ = "0.1.0"
