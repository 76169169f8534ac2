"""Lane-level road maps: borders, lanes, lane graphs, R2S loading, routing and rasterization."""

__version__ = "0.1.0"