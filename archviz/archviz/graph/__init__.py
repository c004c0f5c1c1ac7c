"""In-memory dependency graph: node tree, dependency set and their coordinator."""

from .coordinator import GraphCoordinator, create_graph
from .dependencies import Dependencies
from .interfaces import DependencySource, FoldListener, LayoutView, NullView
from .loader import VisualizationData, load_visualization_data
from .menu import CallbackMenu, Menu, ViolationMenu
from .models import Dependency, LayoutSnapshot, ViolationsGroup, VisibleDependency
from .nodes import Node, NodeTree, build_node

__all__ = [
    "CallbackMenu",
    "Dependencies",
    "Dependency",
    "DependencySource",
    "FoldListener",
    "GraphCoordinator",
    "LayoutSnapshot",
    "LayoutView",
    "Menu",
    "Node",
    "NodeTree",
    "NullView",
    "ViolationMenu",
    "ViolationsGroup",
    "VisibleDependency",
    "VisualizationData",
    "build_node",
    "create_graph",
    "load_visualization_data",
]
