from .cleanup import safe_rmtree, scratch_dir

__all__ = ["safe_rmtree", "scratch_dir"]
