"""FastAPI application, bundled agents and engine bootstrap"""
