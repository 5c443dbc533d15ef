"""CPU triangle rasterizer with programmable shaders and shadow mapping."""

__version__ = "0.1.0"
