"""Web front-end and proxy for a remotely hosted segmentation model."""

__version__ = "0.1.0"
