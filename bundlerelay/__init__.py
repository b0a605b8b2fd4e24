"""BundleRelay: over-the-air update server for mobile JavaScript bundles."""

__version__ = "0.4.0"
