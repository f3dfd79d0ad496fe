"""avybrief: AI-assisted backcountry avalanche briefings."""

__version__ = "0.1.0"
