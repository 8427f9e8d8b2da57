"""Create a Next.js app with a Shuttle backend."""

__version__ = "0.3.0"
