"""SkyPost: compose and publish Bluesky posts with facets, link cards and images."""

__version__ = "1.0.0"
