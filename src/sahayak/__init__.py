"""
Sahayak health assistant.

Keep package import side-effects to a minimum: adapters and the FastAPI app
are imported from their own modules.
"""

__version__ = "0.1.0"
