"""
Domain packages.

Each domain splits into schemas, repository, service and router modules.
Routers are imported directly by ``main`` rather than re-exported here.
"""
