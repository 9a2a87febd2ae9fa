"""scaffoldkit -- renders project template catalogs into directory trees."""

__version__ = "0.1.0"
