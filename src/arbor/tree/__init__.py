from .node import Directory, Leaf, Node, Root, node_from_handler

__all__ = ["Directory", "Leaf", "Node", "Root", "node_from_handler"]
