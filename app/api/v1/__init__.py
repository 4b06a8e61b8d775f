from . import products, routines

__all__ = ["products", "routines"]
