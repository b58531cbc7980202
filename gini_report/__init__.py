"""Home value vs income inequality report for California census tracts."""

__version__ = "0.1.0"

"""MIT License

Creative Commons CC-BY-SA 4.0 2026 Diego Aguilar-Canabal"""
