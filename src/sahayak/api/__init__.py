"""
HTTP surface: FastAPI routers over the provider adapters.
"""
