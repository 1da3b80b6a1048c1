"""Version information for the SigURL Python SDK"""

__version__ = "0.1.0"
