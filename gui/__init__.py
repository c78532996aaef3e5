__all__ = ["MainWindow", "ScopeCanvas"]

from .main_window import MainWindow
from .scope_canvas import ScopeCanvas
