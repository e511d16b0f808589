"""
Level Editor core: layered sparse tile maps, painting tools, undo history
and procedural level generation from smart components.
"""

__version__ = "0.1.0"
