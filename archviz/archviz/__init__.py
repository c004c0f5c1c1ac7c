"""archviz - filter coordination and relayout for architecture dependency graphs."""

__version__ = "0.1.0"
