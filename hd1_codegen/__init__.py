"""
hd1-codegen: schema-driven generator for the HD1 API surface.

Merges hand-written schema fragments with schemas synthesized from foreign
type definitions and component libraries, validates handler bindings and
emits a request router, a command-line client and a scripting client.
"""

__version__ = "0.1.0"
