"""Infrastructure Layer.

Adapters implementing domain ports (rasterio, pyproj), runtime
configuration, and the HTTP binding.
"""
