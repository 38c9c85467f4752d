"""
MeshConsole

Backend of a service mesh observability console: navigation routes and menu,
and the Istio configuration catalog served over FastAPI.
"""

__version__ = "0.1.0"
