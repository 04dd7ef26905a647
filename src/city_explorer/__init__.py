"""City Explorer: search cities, aggregate weather and country data, save results."""

__version__ = "0.1.0"
