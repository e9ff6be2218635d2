from sqlguide.utils import fixtures, logging, module_loader

__all__ = ("fixtures", "logging", "module_loader")
