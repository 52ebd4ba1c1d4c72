"""Employee Registry: employee records over MongoDB with filtered, paginated listing."""

__version__ = "0.1.0"
__author__ = "Employee Registry Team"

__all__ = ["__version__", "__author__"]
